import asyncio
import types

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import worker.davenport_engine as engine
from core.errors import EmptyScheduleError, FetchError
from worker.schedule_extractor import ScheduleEntry

PAGE = """
<html><body><div>
  <h2>Mobile Camera Locations:</h2>
  <p>6/1-6/7</p>
  <ul>
    <li>Monday: 5800 Eastern Ave – 1900 Brady St.</li>
    <li>Tuesday: 5800 Eastern Ave</li>
  </ul>
</div></body></html>
"""


def _fake_playwright(goto):
    """Minimal async_playwright() stand-in whose page.goto is `goto`."""
    closed = []

    class Page:
        async def goto(self, url, wait_until=None, timeout=None):
            return await goto(url, timeout)

        async def content(self):
            return PAGE

    class Context:
        async def new_page(self):
            return Page()

    class Browser:
        async def new_context(self, **kwargs):
            return Context()

        async def close(self):
            closed.append(True)

    class Chromium:
        async def launch(self, headless=True):
            return Browser()

    class Manager:
        async def __aenter__(self):
            return types.SimpleNamespace(chromium=Chromium())

        async def __aexit__(self, *exc):
            return False

    return (lambda: Manager()), closed


def test_normalize_entries_dedupes_by_address_and_day():
    entries = [
        ScheduleEntry("Monday", ["5800 Eastern Ave", "5800 eastern  ave"], "Monday (6/1-6/7)"),
        ScheduleEntry("Tuesday", ["5800 Eastern Ave"], "Tuesday (6/1-6/7)"),
    ]
    locations = engine.normalize_entries(entries)

    assert [(l.address, l.schedule) for l in locations] == [
        ("5800 Eastern Ave", "Monday (6/1-6/7)"),
        ("5800 Eastern Ave", "Tuesday (6/1-6/7)"),
    ]
    assert locations[0].type == "mobile"
    assert locations[0].description == "Mobile camera location for Monday"


def test_locations_from_html():
    locations = engine.locations_from_html(PAGE)
    assert len(locations) == 3
    assert locations[1].as_dict() == {
        "address": "1900 Brady St.",
        "type": "mobile",
        "description": "Mobile camera location for Monday",
        "schedule": "Monday (6/1-6/7)",
    }


def test_empty_page_is_an_error_not_an_empty_list():
    with pytest.raises(EmptyScheduleError):
        engine.locations_from_html("<html><body><p>Page moved</p></body></html>")


def test_fetch_locations_parses_rendered_page(monkeypatch):
    async def goto(url, timeout):
        return types.SimpleNamespace(ok=True, status=200)

    fake, closed = _fake_playwright(goto)
    monkeypatch.setattr(engine, "async_playwright", fake)

    locations = asyncio.run(engine.fetch_locations("https://city.test/cameras"))
    assert len(locations) == 3
    assert closed == [True]


def test_non_2xx_raises_fetch_error(monkeypatch):
    async def goto(url, timeout):
        return types.SimpleNamespace(ok=False, status=503)

    fake, closed = _fake_playwright(goto)
    monkeypatch.setattr(engine, "async_playwright", fake)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(engine.fetch_page_html("https://city.test/cameras"))
    assert excinfo.value.details["status"] == 503
    assert closed == [True]


def test_timeout_raises_fetch_error(monkeypatch):
    async def goto(url, timeout):
        assert timeout == 5000
        raise PlaywrightTimeoutError("Timeout 5000ms exceeded")

    fake, _ = _fake_playwright(goto)
    monkeypatch.setattr(engine, "async_playwright", fake)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(engine.fetch_page_html("https://city.test/cameras", timeout_seconds=5))
    assert isinstance(excinfo.value.cause, PlaywrightTimeoutError)


def test_missing_response_raises_fetch_error(monkeypatch):
    async def goto(url, timeout):
        return None

    fake, _ = _fake_playwright(goto)
    monkeypatch.setattr(engine, "async_playwright", fake)

    with pytest.raises(FetchError):
        asyncio.run(engine.fetch_page_html("https://city.test/cameras"))
