"""Parsers turning provider payloads into candidate record dicts."""

from sportshub.ingestion.parsers.places_parser import PlacesHitParser, sport_type_from_place_types
from sportshub.ingestion.parsers.text_response_parser import (
    FIELD_HANDLERS,
    ParserState,
    TextResponseParser,
    merge_same_name,
)

__all__ = [
    "FIELD_HANDLERS",
    "ParserState",
    "PlacesHitParser",
    "TextResponseParser",
    "merge_same_name",
    "sport_type_from_place_types",
]
