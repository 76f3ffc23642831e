"""
Event Search Pipeline.

Finds sports events through a natural-language search provider. The reply
is free text and goes through the text response parser; missing dates and
times are filled with defaults so every returned event can be shown on a
calendar.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

from sportshub.ingestion.adapters import BaseSourceAdapter, FetchResult
from sportshub.ingestion.errors import InvalidCandidate
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.normalization.datetime_parser import (
    default_event_date,
    parse_date,
    parse_single_time,
    parse_time_range,
)
from sportshub.ingestion.normalization.field_normalizer import (
    filter_value,
    normalize_event_category,
    normalize_skill_level,
    normalize_sport_type,
    parse_int,
)
from sportshub.ingestion.parsers import TextResponseParser
from sportshub.schemas.candidate import CandidateBase, EventCandidate
from sportshub.schemas.enums import CandidateKind

from .base_pipeline import BaseSearchPipeline, PipelineConfig


def build_event_query(
    sport_type: object = None,
    category: object = None,
    start_date: date | None = None,
    end_date: date | None = None,
    suffix: str = "",
) -> str:
    """User message for a language-model event search."""
    sport = (filter_value(sport_type) or "").replace("_", " ")
    query = f"List of upcoming {sport} events in Hong Kong" if sport else "List of upcoming sports events in Hong Kong"

    if category_text := filter_value(category):
        query += f" - {category_text.replace('_', ' ')} events"

    if start_date and end_date:
        query += f" between {start_date.isoformat()} and {end_date.isoformat()}"
    elif start_date:
        query += f" after {start_date.isoformat()}"
    elif end_date:
        query += f" before {end_date.isoformat()}"

    if suffix:
        query += f". {suffix.strip()}"
    return query


class EventSearchPipeline(BaseSearchPipeline):
    """
    Search pipeline for events.

    Args:
        config: PipelineConfig with the time and capacity defaults
        adapter: Language-model search adapter, or None for fallback only
        fallback: Offline dataset
        today: Clock used for default and relative dates
    """

    kind = CandidateKind.EVENT
    model = EventCandidate

    def __init__(
        self,
        config: PipelineConfig,
        adapter: BaseSourceAdapter | None = None,
        fallback: FallbackDataset | None = None,
        today: Callable[[], date] = date.today,
    ):
        super().__init__(config, adapter, fallback)
        self.today = today

    def build_fetch_kwargs(
        self,
        sport_type: object = None,
        category: object = None,
        start_date: date | None = None,
        end_date: date | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        return {
            "query": build_event_query(sport_type, category, start_date, end_date, self.config.query_suffix),
            "system_prompt": self.config.system_prompt,
        }

    def parse(
        self,
        fetch_result: FetchResult,
        sport_type: object = None,
        category: object = None,
        **kwargs,
    ) -> list[dict[str, Any]]:
        parser = TextResponseParser(
            kind=CandidateKind.EVENT,
            default_sport_type=filter_value(sport_type),
            default_category=filter_value(category),
            placeholder=self.config.placeholder,
        )
        return parser.parse(fetch_result.raw_text)

    def normalize(
        self,
        record: dict[str, Any],
        sport_type: object = None,
        category: object = None,
        **kwargs,
    ) -> dict[str, Any]:
        record["kind"] = CandidateKind.EVENT.value

        event_date = record.get("event_date")
        if isinstance(event_date, str):
            event_date = parse_date(event_date)
        record["event_date"] = event_date or default_event_date(self.today())

        self._normalize_times(record)

        record["max_participants"] = parse_int(record.get("max_participants")) or self.config.default_max_participants
        record["sport_type"] = normalize_sport_type(record.get("sport_type") or filter_value(sport_type)).value
        record["category"] = normalize_event_category(record.get("category") or filter_value(category)).value
        record["skill_level"] = normalize_skill_level(record.get("skill_level")).value
        return record

    def _normalize_times(self, record: dict[str, Any]) -> None:
        """Fill ``start_time``/``end_time``; a lone start time gets a two-hour window."""
        defaults = self.config.default_time_range
        start = parse_single_time(record.get("start_time"))
        end = parse_single_time(record.get("end_time"))

        if start and not end:
            end = parse_time_range(start, default=defaults).end
        record["start_time"] = start or defaults.start
        record["end_time"] = end or defaults.end

    def validate(self, candidate: CandidateBase) -> None:
        missing = [key for key in ("event_date", "start_time", "end_time") if not getattr(candidate, key, None)]
        if missing:
            raise InvalidCandidate(f"{candidate.name!r} is missing {', '.join(missing)}")

    def fallback_records(
        self,
        sport_type: object = None,
        category: object = None,
        start_date: date | None = None,
        end_date: date | None = None,
        **kwargs,
    ) -> list[dict[str, Any]]:
        return self.fallback.events(
            sport_type=sport_type,
            category=category,
            start_date=start_date,
            end_date=end_date,
            today=self.today(),
        )
