"""
Import closed historical deployments from a JSON file, or split combined rows.

Usage:
  DATABASE_URL=... python scripts/import_history.py records.json
  DATABASE_URL=... python scripts/import_history.py --split-combined

records.json is a list of objects with address, start_date and optionally
end_date, type, description, schedule.
"""
from __future__ import annotations

import asyncio
import json
import sys

from dotenv import load_dotenv

from core.database import init_db
from worker.geocoding import Geocoder
from worker.history import import_historical_records, split_combined_records


async def main(argv: list[str]) -> None:
    if not argv:
        raise SystemExit(__doc__)

    init_db()
    geocoder = Geocoder()

    if argv[0] == "--split-combined":
        report = await split_combined_records(geocoder)
        print(f"Split {report['processed']} combined record(s) into {report['created']} row(s)")
        return

    with open(argv[0], encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise SystemExit("Expected a JSON list of records")

    report = await import_historical_records(records, geocoder)
    print(f"Imported {report['imported']} row(s), split {report['split']} combined address(es)")


if __name__ == "__main__":
    load_dotenv(override=True)
    asyncio.run(main(sys.argv[1:]))
