"""
Bulk facility import from files.

Reads facilities from JSON arrays, GeoJSON FeatureCollections or CSV files
and commits each through the orchestrator, so imported rows get the same
duplicate check and ``pending`` state as searched ones.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sportshub.ingestion.errors import InvalidCandidate
from sportshub.ingestion.normalization.field_normalizer import normalize_district, normalize_sport_type
from sportshub.ingestion.normalization.location_parser import parse_float
from sportshub.schemas.candidate import FacilityCandidate
from sportshub.schemas.enums import SearchSource

logger = logging.getLogger(__name__)

GEOJSON_DEFAULTS = {
    "name": "Unknown Facility",
    "type": "other",
    "district": "central",
    "address": "Hong Kong",
}


@dataclass
class ImportReport:
    """Summary of one import run."""

    source: str
    imported: list[int] = field(default_factory=list)
    skipped_duplicates: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


class FacilityFileImporter:
    """
    Import facility files through an IngestionOrchestrator.

    Each record is validated as a FacilityCandidate tagged ``file_import``;
    records without coordinates or with an empty name are reported as errors
    and skipped.
    """

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator

    async def import_json(self, path: Path | str) -> ImportReport:
        """
        Import a JSON array of facility objects.

        Raises:
            ValueError: If the file does not hold an array
        """
        path = Path(path)
        logger.info(f"Importing facilities from {path}")
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError("Import file must contain an array of facilities")
        return await self.import_records(data, source=str(path))

    async def import_geojson(self, path: Path | str) -> ImportReport:
        """
        Import Point features of a GeoJSON FeatureCollection.

        Coordinates are ``[longitude, latitude]``; features without point
        geometry are skipped with a warning.

        Raises:
            ValueError: If the file is not a FeatureCollection
        """
        path = Path(path)
        logger.info(f"Importing facilities from GeoJSON: {path}")
        with path.open(encoding="utf-8") as f:
            geojson = json.load(f)
        if not isinstance(geojson, dict) or geojson.get("type") != "FeatureCollection":
            raise ValueError("Invalid GeoJSON format")
        if not isinstance(geojson.get("features"), list):
            raise ValueError("Invalid GeoJSON format")

        records = []
        for feature in geojson["features"]:
            record = feature_to_record(feature)
            if record is None:
                logger.warning("Skipping feature without valid point geometry")
                continue
            records.append(record)
        return await self.import_records(records, source=str(path))

    async def import_csv(self, path: Path | str) -> ImportReport:
        """Import a CSV file with a header row naming facility fields."""
        path = Path(path)
        logger.info(f"Importing facilities from CSV: {path}")
        with path.open(encoding="utf-8", newline="") as f:
            rows = [
                {key.strip(): (value or "").strip() for key, value in row.items() if key}
                for row in csv.DictReader(f)
            ]
        return await self.import_records(rows, source=str(path))

    async def import_records(self, records: list[dict[str, Any]], source: str = "records") -> ImportReport:
        """Validate and commit already-loaded facility dicts."""
        report = ImportReport(source=source)

        for idx, data in enumerate(records):
            name = (data.get("name") or "").strip() if isinstance(data, dict) else ""
            try:
                candidate = record_to_candidate(data)
                result = await self.orchestrator.commit_facility(candidate)
            except InvalidCandidate as e:
                report.errors.append(f"record {idx} ({name or 'unnamed'}): {e}")
                logger.error(f"Error importing facility {name or 'unnamed'}: {e}")
                continue

            if result.committed:
                report.imported.append(result.entity_id)
            else:
                report.skipped_duplicates += 1
                logger.info(f"Skipping duplicate facility: {candidate.name}")

        logger.info(
            f"Import completed: {report.imported_count} imported, "
            f"{report.skipped_duplicates} duplicates, {len(report.errors)} errors"
        )
        return report


def feature_to_record(feature: dict[str, Any]) -> dict[str, Any] | None:
    """Flat facility dict for one GeoJSON Point feature, or None."""
    geometry = (feature or {}).get("geometry") or {}
    coordinates = geometry.get("coordinates")
    if geometry.get("type") != "Point" or not isinstance(coordinates, list) or len(coordinates) < 2:
        return None

    props = feature.get("properties") or {}
    longitude, latitude = coordinates[0], coordinates[1]
    record = {key: props.get(key) or default for key, default in GEOJSON_DEFAULTS.items()}
    record.update(
        {
            "description": props.get("description"),
            "image_url": props.get("imageUrl") or props.get("image_url"),
            "latitude": latitude,
            "longitude": longitude,
        }
    )
    return record


def record_to_candidate(data: dict[str, Any]) -> FacilityCandidate:
    """
    Validate one flat facility dict.

    Raises:
        InvalidCandidate: If the record has no name or no coordinates, or
            does not validate
    """
    if not isinstance(data, dict):
        raise InvalidCandidate("record is not an object")

    latitude = parse_float(data.get("latitude"))
    longitude = parse_float(data.get("longitude"))
    if latitude is None or longitude is None:
        raise InvalidCandidate("latitude and longitude are required")

    sport_type = data.get("sport_type") or data.get("type")
    address = data.get("address") or ""
    record = {
        "name": data.get("name") or "",
        "description": data.get("description"),
        "sport_type": normalize_sport_type(sport_type).value,
        "district": normalize_district(data.get("district") or address).value,
        "address": address,
        "latitude": latitude,
        "longitude": longitude,
        "image_url": data.get("image_url") or data.get("imageUrl") or None,
        "rating": parse_float(data.get("rating")),
        "search_source": SearchSource.FILE_IMPORT.value,
    }
    try:
        return FacilityCandidate.model_validate(record)
    except ValidationError as e:
        raise InvalidCandidate(str(e)) from e
