#!/usr/bin/env python3
"""
Import facilities from a JSON, GeoJSON or CSV file.

Imported facilities land in the store as ``pending`` and still need an
operator's approval before they are public.

Usage:
    python scripts/import_facilities.py path/to/facilities.geojson
"""

import asyncio
import sys
from pathlib import Path

from sportshub.configs.logging import configure_logging
from sportshub.configs.settings import get_settings
from sportshub.ingestion.factory import build_importer, build_orchestrator


async def run(path: Path) -> int:
    orchestrator = build_orchestrator()
    importer = build_importer(orchestrator)

    suffix = path.suffix.lower()
    if suffix == ".geojson":
        report = await importer.import_geojson(path)
    elif suffix == ".csv":
        report = await importer.import_csv(path)
    else:
        report = await importer.import_json(path)
    await orchestrator.close()

    print(f"Imported: {report.imported_count}")
    print(f"Skipped duplicates: {report.skipped_duplicates}")
    if report.errors:
        print(f"Errors ({len(report.errors)}):")
        for error in report.errors:
            print(f"   - {error}")
    return 0 if not report.errors else 1


def main() -> int:
    configure_logging(get_settings().LOG_LEVEL)
    if len(sys.argv) != 2:
        print(__doc__)
        return 2
    return asyncio.run(run(Path(sys.argv[1])))


if __name__ == "__main__":
    sys.exit(main())
