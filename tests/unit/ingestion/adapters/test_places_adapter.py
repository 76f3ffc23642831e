"""
Unit tests for the places_adapter module.

Tests for PlacesAdapter text search, nearby search, status handling and
retry behaviour.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from sportshub.ingestion.adapters.base_adapter import SourceType
from sportshub.ingestion.adapters.places_adapter import (
    PlacesAdapter,
    PlacesAdapterConfig,
    build_text_query,
)
from sportshub.schemas.enums import District, SportType

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def places_config():
    """Places config with a key."""
    return PlacesAdapterConfig(
        source_id="google_places",
        source_type=SourceType.PLACES,
        api_key="test-key",
        max_retries=2,
    )


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestBuildTextQuery:
    """Tests for build_text_query."""

    @pytest.mark.parametrize(
        "sport,district,expected",
        [
            ("tennis", "central", "tennis facilities in central, Hong Kong"),
            (SportType.SPORTS_CENTRE, None, "sports centre facilities in Hong Kong"),
            (None, District.KOWLOON_CITY, "sports facilities in kowloon city, Hong Kong"),
            ("all", "all", "sports facilities in Hong Kong"),
        ],
    )
    def test_queries(self, sport, district, expected):
        """Should phrase the query from the specific filters only."""
        assert build_text_query(sport, district) == expected


class TestPlacesAdapterConfig:
    """Tests for PlacesAdapterConfig."""

    def test_source_type_set(self):
        """Should force the PLACES source type."""
        config = PlacesAdapterConfig(source_id="p", source_type=SourceType.LANGUAGE_MODEL)

        assert config.source_type == SourceType.PLACES

    def test_validate_requires_url(self):
        """Should reject an empty text search URL."""
        with pytest.raises(ValueError):
            PlacesAdapter(PlacesAdapterConfig(source_id="p", source_type=SourceType.PLACES, text_search_url=""))


class TestPlacesAdapterFetch:
    """Tests for PlacesAdapter.fetch and fetch_nearby."""

    def test_not_configured(self):
        """Should fail without calling the network when no key is set."""
        adapter = PlacesAdapter(PlacesAdapterConfig(source_id="p", source_type=SourceType.PLACES))

        with patch.object(adapter, "_make_request", new=AsyncMock()) as mock_request:
            result = asyncio.run(adapter.fetch(sport_type="tennis"))

        assert result.success is False
        mock_request.assert_not_called()

    def test_fetch_success(self, places_config):
        """Should return the result list as raw_data."""
        adapter = PlacesAdapter(places_config)
        payload = {"status": "OK", "results": [{"name": "A"}, {"name": "B"}]}

        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            result = asyncio.run(adapter.fetch(sport_type="tennis", district="wanchai"))

        assert result.success is True
        assert result.raw_data == [{"name": "A"}, {"name": "B"}]
        assert result.total_fetched == 2
        assert result.metadata["status"] == "OK"
        assert result.metadata["query"] == "tennis facilities in wanchai, Hong Kong"

    def test_fetch_biases_to_district_centre(self, places_config):
        """Should centre the search on the requested district."""
        adapter = PlacesAdapter(places_config)
        mock_request = AsyncMock(return_value={"status": "ZERO_RESULTS", "results": []})

        with patch.object(adapter, "_make_request", new=mock_request):
            asyncio.run(adapter.fetch(district="sha_tin"))

        params = mock_request.call_args.args[2]
        assert params["location"] == "22.387,114.195"
        assert params["key"] == "test-key"

    def test_zero_results_is_success(self, places_config):
        """Should treat ZERO_RESULTS as an empty success."""
        adapter = PlacesAdapter(places_config)

        with patch.object(
            adapter, "_make_request", new=AsyncMock(return_value={"status": "ZERO_RESULTS", "results": []})
        ):
            result = asyncio.run(adapter.fetch())

        assert result.success is True
        assert result.raw_data == []

    def test_request_failure(self, places_config):
        """Should report a failed fetch when the request gives up."""
        adapter = PlacesAdapter(places_config)

        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=None)):
            result = asyncio.run(adapter.fetch())

        assert result.success is False
        assert result.errors == ["Places request failed"]

    def test_exception_captured(self, places_config):
        """Should never raise out of fetch."""
        adapter = PlacesAdapter(places_config)

        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=RuntimeError("boom"))):
            result = asyncio.run(adapter.fetch())

        assert result.success is False
        assert "boom" in result.errors[0]

    @pytest.mark.parametrize(
        "sport,keyword",
        [("tennis", "tennis court"), (SportType.SPORTS_GROUND, "sports ground court"), (None, "sports facility")],
    )
    def test_fetch_nearby_keyword(self, places_config, sport, keyword):
        """Should search nearby by keyword around the point."""
        adapter = PlacesAdapter(places_config)
        mock_request = AsyncMock(return_value={"status": "OK", "results": []})

        with patch.object(adapter, "_make_request", new=mock_request):
            asyncio.run(adapter.fetch_nearby(22.28, 114.15, sport_type=sport, radius_m=500))

        url, params = mock_request.call_args.args[1], mock_request.call_args.args[2]
        assert url == places_config.nearby_search_url
        assert params["keyword"] == keyword
        assert params["radius"] == 500
        assert params["location"] == "22.28,114.15"


class TestPlacesAdapterMakeRequest:
    """Tests for PlacesAdapter._make_request."""

    def test_ok_status(self, places_config):
        """Should return the payload for OK."""
        adapter = PlacesAdapter(places_config)
        client = AsyncMock()
        client.get = AsyncMock(return_value=json_response({"status": "OK", "results": []}))

        with patch("asyncio.sleep", new=AsyncMock()):
            result = asyncio.run(adapter._make_request(client, "https://x", {}))

        assert result == {"status": "OK", "results": []}

    def test_denied_is_final(self, places_config):
        """Should not retry non-retryable statuses."""
        adapter = PlacesAdapter(places_config)
        client = AsyncMock()
        client.get = AsyncMock(return_value=json_response({"status": "REQUEST_DENIED", "error_message": "bad key"}))

        with patch("asyncio.sleep", new=AsyncMock()):
            result = asyncio.run(adapter._make_request(client, "https://x", {}))

        assert result is None
        assert client.get.call_count == 1

    def test_retry_on_over_query_limit(self, places_config):
        """Should retry OVER_QUERY_LIMIT and succeed."""
        adapter = PlacesAdapter(places_config)
        client = AsyncMock()
        client.get = AsyncMock(
            side_effect=[
                json_response({"status": "OVER_QUERY_LIMIT"}),
                json_response({"status": "OK", "results": [{"name": "A"}]}),
            ]
        )

        with patch("asyncio.sleep", new=AsyncMock()):
            result = asyncio.run(adapter._make_request(client, "https://x", {}))

        assert client.get.call_count == 2
        assert result["results"] == [{"name": "A"}]

    def test_max_retries_exceeded(self, places_config):
        """Should return None after max retries."""
        adapter = PlacesAdapter(places_config)
        client = AsyncMock()
        client.get = AsyncMock(side_effect=httpx.HTTPError("Failed"))

        with patch("asyncio.sleep", new=AsyncMock()):
            result = asyncio.run(adapter._make_request(client, "https://x", {}))

        assert result is None
        assert client.get.call_count == 3  # Initial + 2 retries

    def test_exponential_backoff(self, places_config):
        """Should double the wait between retries."""
        places_config.rate_limit_per_second = 10
        adapter = PlacesAdapter(places_config)
        client = AsyncMock()
        client.get = AsyncMock(side_effect=httpx.HTTPError("Failed"))

        with patch("asyncio.sleep", new=AsyncMock()) as mock_sleep:
            asyncio.run(adapter._make_request(client, "https://x", {}))

        waits = [c.args[0] for c in mock_sleep.call_args_list if c.args[0] != 0.1]
        assert waits == [1.0, 2.0]
