import asyncio
from datetime import date, datetime, timezone

import pytest

import worker.reconciler as reconciler
from core.database import get_all_deployments, get_camera_locations, get_current_deployments
from core.errors import PersistenceError
from worker.address_parser import normalize_address
from worker.davenport_engine import ScrapedLocation


def _loc(address, day="Monday"):
    return ScrapedLocation(address, "mobile", f"Mobile camera location for {day}", f"{day} (6/1-6/7)")


def test_week_label():
    assert reconciler.week_label(date(2025, 6, 2)) == "2025-W23"
    assert reconciler.week_label(date(2024, 12, 30)) == "2025-W01"


def test_group_by_address_merges_days():
    groups = reconciler.group_by_address(
        [_loc("5800 Eastern Ave"), _loc("1900 Brady St", "Tuesday"), _loc("5800 eastern ave", "Wednesday")]
    )
    assert [g["address"] for g in groups] == ["5800 Eastern Ave", "1900 Brady St"]
    assert groups[0]["schedule"] == "Monday (6/1-6/7); Wednesday (6/1-6/7)"


def test_first_reconcile_opens_rows_and_writes_snapshot(db, fake_geocoder):
    now = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
    result = asyncio.run(
        reconciler.reconcile([_loc("5800 Eastern Ave"), _loc("9999 Nowhere Rd", "Friday")], fake_geocoder, now)
    )

    assert result.closed == 0
    assert result.opened == 2
    assert result.missing_coordinates == 1
    assert result.week_of_year == "2025-W23"

    current = get_current_deployments()
    by_address = {d["address"]: d for d in current}
    assert by_address["5800 Eastern Ave"]["latitude"] == pytest.approx(41.5601)
    assert by_address["9999 Nowhere Rd"]["latitude"] is None
    assert all(d["start_date"] == "2025-06-02" and d["is_active"] for d in current)
    assert len(get_camera_locations()) == 2


def test_second_reconcile_closes_everything_and_reopens(db, fake_geocoder):
    first = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
    second = datetime(2025, 6, 9, 9, 0, tzinfo=timezone.utc)
    asyncio.run(reconciler.reconcile([_loc("5800 Eastern Ave")], fake_geocoder, first))
    result = asyncio.run(
        reconciler.reconcile([_loc("5800 Eastern Ave"), _loc("1900 Brady St", "Tuesday")], fake_geocoder, second)
    )

    assert result.closed == 1
    rows = get_all_deployments()
    assert len(rows) == 3
    closed = [r for r in rows if r["end_date"] is not None]
    assert [(r["address"], r["end_date"]) for r in closed] == [("5800 Eastern Ave", "2025-06-09")]

    open_by_address = {}
    for r in get_current_deployments():
        open_by_address.setdefault(normalize_address(r["address"]), []).append(r)
    assert all(len(v) == 1 for v in open_by_address.values())
    assert set(open_by_address) == {"5800 eastern ave", "1900 brady st"}


def test_same_address_on_several_days_gets_one_open_row(db, fake_geocoder):
    now = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
    asyncio.run(
        reconciler.reconcile([_loc("5800 Eastern Ave"), _loc("5800 Eastern Ave", "Thursday")], fake_geocoder, now)
    )

    assert len(get_current_deployments()) == 1
    # the snapshot keeps one row per (address, day)
    assert len(get_camera_locations()) == 2
    assert fake_geocoder.calls == ["5800 Eastern Ave"]


def test_failed_write_rolls_back_everything(db, fake_geocoder, monkeypatch):
    first = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
    asyncio.run(reconciler.reconcile([_loc("5800 Eastern Ave")], fake_geocoder, first))

    def boom(cur, locations, updated_at=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(reconciler, "replace_camera_locations", boom)

    with pytest.raises(PersistenceError):
        asyncio.run(
            reconciler.reconcile(
                [_loc("1900 Brady St", "Tuesday")],
                fake_geocoder,
                datetime(2025, 6, 9, 9, 0, tzinfo=timezone.utc),
            )
        )

    current = get_current_deployments()
    assert [d["address"] for d in current] == ["5800 Eastern Ave"]
    assert len(get_all_deployments()) == 1
    assert [l["address"] for l in get_camera_locations()] == ["5800 Eastern Ave"]


def test_reconcile_rejects_empty_list(db, fake_geocoder):
    with pytest.raises(ValueError):
        asyncio.run(reconciler.reconcile([], fake_geocoder))
