#!/usr/bin/env python3
"""
Simple script to run facility and event searches.

Builds the orchestrator from ingestion.yaml and the environment, runs one
facility search and one event search, and prints the candidates. Without
provider keys the results come from the fallback dataset.

Usage:
    python scripts/run_search.py [sport_type] [district]
"""

import asyncio
import sys

from sportshub.configs.logging import configure_logging
from sportshub.configs.settings import get_settings
from sportshub.ingestion.factory import build_orchestrator


async def run(sport_type: str | None, district: str | None) -> int:
    orchestrator = build_orchestrator()
    try:
        facilities = await orchestrator.search_facilities(sport_type, district)
        events = await orchestrator.search_events(sport_type)
    finally:
        await orchestrator.close()

    print("\n" + "=" * 80)
    print(f"FACILITIES ({len(facilities)})")
    print("=" * 80)
    for idx, facility in enumerate(facilities, 1):
        print(f"   {idx}. {facility.name}")
        print(f"      Type: {facility.sport_type.value}  District: {facility.district.value}")
        print(f"      Address: {facility.address}")
        print(f"      Coordinates: {facility.latitude}, {facility.longitude}")
        print(f"      Source: {facility.search_source.value}")

    print("\n" + "=" * 80)
    print(f"EVENTS ({len(events)})")
    print("=" * 80)
    for idx, event in enumerate(events, 1):
        print(f"   {idx}. {event.name}")
        print(f"      When: {event.event_date} {event.start_time}-{event.end_time}")
        print(f"      Sport: {event.sport_type.value}  Category: {event.category.value}")
        print(f"      Where: {event.location.name or event.location.address}")

    for result in orchestrator.get_execution_history():
        if result.errors:
            print(f"\n{result.source_name} errors:")
            for error in result.errors:
                print(f"   - {error}")

    print("\n" + "=" * 80)
    print(f"Stats: {orchestrator.stats()}")
    return 0 if facilities or events else 1


def main() -> int:
    configure_logging(get_settings().LOG_LEVEL)
    sport_type = sys.argv[1] if len(sys.argv) > 1 else None
    district = sys.argv[2] if len(sys.argv) > 2 else None
    return asyncio.run(run(sport_type, district))


if __name__ == "__main__":
    sys.exit(main())
