from datetime import datetime, timezone

import pytest

from core.db.schema import init_db
from core.rate_limit import TokenBucket
from worker.geocoding import GeocodeResult


class FakeGeocoder:
    """Returns canned coordinates; addresses not in `known` resolve to None."""

    def __init__(self, known=None):
        self.known = known or {}
        self.calls = []

    async def geocode(self, address):
        self.calls.append(address)
        coords = self.known.get(address)
        if coords is None:
            return None
        return GeocodeResult(coords[0], coords[1], f"{address}, Davenport, Iowa")


class Clock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh sqlite database per test."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    init_db()
    yield


@pytest.fixture
def make_geocoder():
    return FakeGeocoder


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder(
        {
            "5800 Eastern Ave": (41.5601, -90.5713),
            "1900 Brady St": (41.5412, -90.5744),
        }
    )


@pytest.fixture
def clock():
    return Clock(datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def no_wait():
    return TokenBucket.every(0)
