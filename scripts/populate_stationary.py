"""
Seed the fixed red-light cameras and geocode any still missing coordinates.

Usage:
  DATABASE_URL=... python scripts/populate_stationary.py
"""
import asyncio

from dotenv import load_dotenv

from core.database import init_db
from worker.geocoding import Geocoder
from worker.stationary import populate_stationary_cameras


async def main() -> None:
    init_db()
    report = await populate_stationary_cameras(Geocoder())
    print(f"Stationary cameras: {report['total']} total, {report['geocoded']} geocoded")
    for address in report["failed"]:
        print(f" - could not geocode: {address}")


if __name__ == "__main__":
    load_dotenv(override=True)
    asyncio.run(main())
