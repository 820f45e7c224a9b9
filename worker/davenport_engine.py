import logging
import os
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from core.errors import EmptyScheduleError, FetchError
from worker.address_parser import normalize_address
from worker.schedule_extractor import ScheduleEntry, extract_schedule

# -------- CONFIG --------
SOURCE_URL = os.getenv(
    "SOURCE_URL",
    "https://www.davenportiowa.com/government/departments/police/automated_traffic_enforcement",
)
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
HEADLESS = os.getenv("PLAYWRIGHT_HEADLESS", "true").lower() == "true"
# ------------------------

MOBILE = "mobile"

log = logging.getLogger("worker.engine")


@dataclass(frozen=True)
class ScrapedLocation:
    address: str
    type: str
    description: str
    schedule: str

    def as_dict(self) -> Dict:
        return asdict(self)


async def fetch_page_html(
    url: str = SOURCE_URL,
    headless: bool = HEADLESS,
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
) -> str:
    """
    Load the enforcement page and return its rendered HTML.
    Raises FetchError on timeout, no response or a non-2xx status.
    """
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=headless)
            try:
                context = await browser.new_context(
                    user_agent=(
                        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                        "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
                    ),
                    extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
                )
                page = await context.new_page()

                log.info("Loading page", extra={"url": url})
                response = await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=timeout_seconds * 1000,
                )
                if response is None:
                    raise FetchError("No response from source page", url=url)
                if not response.ok:
                    raise FetchError(
                        f"Source page returned HTTP {response.status}",
                        url=url,
                        status=response.status,
                    )

                html = await page.content()
                log.info("Page loaded", extra={"status": response.status, "length": len(html)})
                return html
            finally:
                await browser.close()
    except PlaywrightTimeoutError as exc:
        raise FetchError(f"Timed out after {timeout_seconds:g}s loading source page", cause=exc, url=url) from exc
    except PlaywrightError as exc:
        raise FetchError("Browser error loading source page", cause=exc, url=url) from exc


def normalize_entries(entries: Iterable[ScheduleEntry]) -> List[ScrapedLocation]:
    """
    One ScrapedLocation per (address, day), first occurrence wins.
    """
    seen = set()
    locations: List[ScrapedLocation] = []
    for entry in entries:
        for address in entry.addresses:
            key = (normalize_address(address), entry.day)
            if key in seen:
                continue
            seen.add(key)
            locations.append(
                ScrapedLocation(
                    address=address,
                    type=MOBILE,
                    description=f"Mobile camera location for {entry.day}",
                    schedule=entry.schedule_label,
                )
            )
    return locations


def locations_from_html(html: str) -> List[ScrapedLocation]:
    locations = normalize_entries(extract_schedule(html))
    if not locations:
        raise EmptyScheduleError("No camera locations found on source page")
    log.info("Parsed camera locations", extra={"count": len(locations)})
    return locations


async def fetch_locations(url: str = SOURCE_URL, headless: bool = HEADLESS) -> List[ScrapedLocation]:
    """Fetch the page and return the canonical location list (never empty)."""
    html = await fetch_page_html(url, headless=headless)
    try:
        return locations_from_html(html)
    except EmptyScheduleError as exc:
        exc.details.setdefault("url", url)
        raise


__all__ = [
    "MOBILE",
    "SOURCE_URL",
    "ScrapedLocation",
    "fetch_locations",
    "fetch_page_html",
    "locations_from_html",
    "normalize_entries",
]
