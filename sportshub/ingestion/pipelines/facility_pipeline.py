"""
Facility Search Pipeline.

Finds sports facilities by type and district. Works with either provider
kind: the Places adapter returns structured hits, a language-model adapter
returns a free-text list that goes through the text response parser.
"""

from __future__ import annotations

from typing import Any

from sportshub.ingestion.adapters import BaseSourceAdapter, FetchResult, SourceType
from sportshub.ingestion.errors import InvalidCandidate
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.normalization.field_normalizer import (
    filter_value,
    normalize_district,
    normalize_sport_type,
)
from sportshub.ingestion.normalization.location_parser import parse_float
from sportshub.ingestion.parsers import PlacesHitParser, TextResponseParser
from sportshub.schemas.candidate import CandidateBase, FacilityCandidate
from sportshub.schemas.enums import CandidateKind

from .base_pipeline import BaseSearchPipeline, PipelineConfig


def build_facility_query(sport_type: object = None, district: object = None) -> str:
    """User message for a language-model facility search."""
    sport = (filter_value(sport_type) or "").replace("_", " ")
    area = (filter_value(district) or "").replace("_", " ")
    if sport and area:
        return f"List of {sport} facilities in {area}, Hong Kong with their name, address, and GPS coordinates"
    if sport:
        return f"List of {sport} facilities in Hong Kong with their name, address, and GPS coordinates"
    if area:
        return f"List of sports facilities in {area}, Hong Kong with their name, address, and GPS coordinates"
    return "List of sports facilities in Hong Kong"


class FacilitySearchPipeline(BaseSearchPipeline):
    """
    Search pipeline for facilities.

    Facilities are only returned with confirmed coordinates inside the
    configured bounding box; a facility that cannot be put on the map is of
    no use to the platform.
    """

    kind = CandidateKind.FACILITY
    model = FacilityCandidate

    def __init__(
        self,
        config: PipelineConfig,
        adapter: BaseSourceAdapter | None = None,
        fallback: FallbackDataset | None = None,
        places_parser: PlacesHitParser | None = None,
    ):
        super().__init__(config, adapter, fallback)
        self.places_parser = places_parser or PlacesHitParser(default_district=config.default_district)

    def build_fetch_kwargs(self, sport_type: object = None, district: object = None, **kwargs) -> dict[str, Any]:
        if self.source_type == SourceType.PLACES:
            return {"sport_type": filter_value(sport_type), "district": filter_value(district)}
        return {
            "query": build_facility_query(sport_type, district),
            "system_prompt": self.config.system_prompt,
        }

    def parse(self, fetch_result: FetchResult, sport_type: object = None, **kwargs) -> list[dict[str, Any]]:
        requested = filter_value(sport_type)
        if fetch_result.source_type == SourceType.PLACES:
            return self.places_parser.parse(fetch_result.raw_data, requested)

        parser = TextResponseParser(
            kind=CandidateKind.FACILITY,
            default_sport_type=requested,
            placeholder=self.config.placeholder,
        )
        return parser.parse(fetch_result.raw_text)

    def normalize(
        self,
        record: dict[str, Any],
        sport_type: object = None,
        district: object = None,
        **kwargs,
    ) -> dict[str, Any]:
        record["kind"] = CandidateKind.FACILITY.value
        record["sport_type"] = normalize_sport_type(record.get("sport_type") or filter_value(sport_type)).value

        # District text first, then the address, then the requested district
        default_district = normalize_district(district, default=self.config.default_district)
        location = record.get("location") or {}
        district_text = record.get("district") or location.get("address") or record.get("address")
        record["district"] = normalize_district(district_text, default=default_district).value

        if record.get("rating") is not None:
            record["rating"] = parse_float(record["rating"])
        return record

    def validate(self, candidate: CandidateBase) -> None:
        if not candidate.location.is_confirmed:
            raise InvalidCandidate(f"{candidate.name!r} has no confirmed coordinates")
        if not self.config.bounding_box.contains(candidate.latitude, candidate.longitude):
            raise InvalidCandidate(
                f"{candidate.name!r} at ({candidate.latitude}, {candidate.longitude}) is outside the bounding box"
            )

    def fallback_records(self, sport_type: object = None, district: object = None, **kwargs) -> list[dict[str, Any]]:
        return self.fallback.facilities(sport_type=sport_type, district=district)
