"""
Print the snapshot, open deployments and the integrity report.

Usage:
  DATABASE_URL=... python scripts/debug_deployments.py
"""
import json

from dotenv import load_dotenv

from core.database import get_camera_locations, get_current_deployments, init_db
from worker.analyzer import analyze

load_dotenv(override=True)
init_db()

print("\nSnapshot (camera_locations):")
locations = get_camera_locations()
print(f"Total: {len(locations)}")
for loc in locations:
    print(f" - {loc['address']} | {loc.get('schedule') or ''}")

print("\nOpen deployments:")
for d in get_current_deployments():
    print(f" - #{d['id']} {d['address']} since {d['start_date']} ({d.get('latitude')}, {d.get('longitude')})")

print("\nIntegrity report:")
report = analyze()
print(json.dumps(report["summary"], indent=2))
for dup in report["duplicate_addresses"]:
    print(f" duplicate: {dup['address']} x{dup['count']}")
for ov in report["overlapping_active"]:
    print(f" OVERLAP: {ov['address']} ({len(ov['active_deployments'])} open rows)")
