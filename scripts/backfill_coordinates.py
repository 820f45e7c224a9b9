"""
Re-geocode deployments that have no coordinates.

Usage:
  DATABASE_URL=... python scripts/backfill_coordinates.py
"""
import asyncio

from dotenv import load_dotenv

from core.database import init_db
from worker.geocoding import Geocoder
from worker.history import backfill_missing_coordinates


async def main() -> None:
    init_db()
    report = await backfill_missing_coordinates(Geocoder())
    print(f"Checked {report['checked']} deployment(s), updated {report['updated']}")
    for row in report["unresolved"]:
        print(f" - unresolved #{row['id']}: {row['address']}")


if __name__ == "__main__":
    load_dotenv(override=True)
    asyncio.run(main())
