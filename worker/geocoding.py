"""
Address -> coordinates for Davenport camera locations.

Order of attempts:
  1. the verified-coordinates table (no network call)
  2. intersection formulations for "A & B" addresses, or direct formulations
  3. each provider hit must land inside the city bounds or name Davenport, Iowa

Provider rate limit: the public Nominatim policy is one request per second.
Every provider call goes through this adapter's TokenBucket, so callers can
loop over addresses without their own sleeps. Do not share a provider across
Geocoder instances that don't share the bucket.
"""
from __future__ import annotations

import logging
import os
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, NamedTuple, Optional

import httpx

from core.errors import GeocodeError
from core.rate_limit import TokenBucket
from worker.verified_coordinates import get_verified_coordinates, is_within_bounds

# -------- CONFIG --------
GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "DavenportCameraAlerts/1.0")
GEOCODE_TIMEOUT_SECONDS = float(os.getenv("GEOCODE_TIMEOUT_SECONDS", "10"))
GEOCODE_DELAY_SECONDS = float(os.getenv("GEOCODE_DELAY_SECONDS", "1.0"))
# ------------------------

CITY = "Davenport"
COUNTY = "Scott County"
STATE = "Iowa"
ZIP_CODES = ("52801", "52802", "52803", "52804")

log = logging.getLogger("worker.geocoding")

_HOUSE_NUMBER = re.compile(r"^\d+\s+")
_STREET_TYPES = [
    (re.compile(r"\bSt\b", re.IGNORECASE), "Street"),
    (re.compile(r"\bAve?\b", re.IGNORECASE), "Avenue"),
    (re.compile(r"\bRd\b", re.IGNORECASE), "Road"),
    (re.compile(r"\bDr\b", re.IGNORECASE), "Drive"),
    (re.compile(r"\bBlvd\b", re.IGNORECASE), "Boulevard"),
    (re.compile(r"\bLn\b", re.IGNORECASE), "Lane"),
    (re.compile(r"\bPkwy\b", re.IGNORECASE), "Parkway"),
]


class GeocodeResult(NamedTuple):
    latitude: float
    longitude: float
    formatted_address: str


def extract_street_name(address_part: str) -> str:
    """
    "5800 Eastern Ave" -> "Eastern Avenue"; "1900 Brady St." -> "Brady Street".
    """
    cleaned = _HOUSE_NUMBER.sub("", (address_part or "").strip()).rstrip(".").strip()
    for pattern, replacement in _STREET_TYPES:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned.replace(".", "")


def intersection_queries(address: str) -> List[str]:
    """Ordered provider queries for an "A & B" intersection, most specific first."""
    parts = [p.strip() for p in (address or "").split("&")]
    if len(parts) != 2 or not all(parts):
        return []

    first, second = parts
    street1 = extract_street_name(first)
    street2 = extract_street_name(second)

    queries = [
        f"{street1} and {street2}, {CITY}, {COUNTY}, {STATE}, USA",
        f"intersection of {street1} and {street2}, {CITY}, {STATE}, USA",
        f"{street1} & {street2}, {CITY}, {COUNTY}, IA",
        f"{first} and {second}, {CITY}, {COUNTY}, {STATE}",
    ]
    queries.extend(f"{street1} and {street2}, {CITY}, IA {zip_code}" for zip_code in ZIP_CODES)
    # single-leg fallbacks
    queries.append(f"{first}, {CITY}, {COUNTY}, {STATE}")
    queries.append(f"{second}, {CITY}, {COUNTY}, {STATE}")
    return queries


def direct_queries(address: str) -> List[str]:
    address = (address or "").strip().rstrip(".")
    if not address:
        return []
    return [
        f"{address}, {CITY}, {COUNTY}, {STATE}, USA",
        f"{extract_street_name(address)}, {CITY}, {STATE}, USA",
    ]


def mentions_municipality(formatted_address: str) -> bool:
    text = (formatted_address or "").lower()
    return CITY.lower() in text and (STATE.lower() in text or ", ia" in text)


def accept_result(latitude: float, longitude: float, formatted_address: str) -> bool:
    return is_within_bounds(latitude, longitude) or mentions_municipality(formatted_address)


class Geocoder:
    def __init__(
        self,
        base_url: str = GEOCODER_URL,
        user_agent: str = GEOCODER_USER_AGENT,
        timeout: float = GEOCODE_TIMEOUT_SECONDS,
        limiter: TokenBucket | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.limiter = limiter or TokenBucket.every(GEOCODE_DELAY_SECONDS)
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
        ) as client:
            yield client

    async def _search(self, client: httpx.AsyncClient, query: str) -> Optional[GeocodeResult]:
        await self.limiter.acquire()
        try:
            resp = await client.get(
                self.base_url,
                params={
                    "q": query,
                    "format": "json",
                    "limit": 5,
                    "addressdetails": 1,
                    "countrycodes": "us",
                },
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise GeocodeError("Geocoder request failed", cause=exc, query=query) from exc

        if resp.status_code != 200:
            raise GeocodeError(
                f"Geocoder returned HTTP {resp.status_code}",
                query=query,
                status=resp.status_code,
            )

        try:
            results = resp.json()
        except ValueError as exc:
            raise GeocodeError("Geocoder returned invalid JSON", cause=exc, query=query) from exc

        for item in results or []:
            try:
                lat = float(item["lat"])
                lon = float(item["lon"])
            except (KeyError, TypeError, ValueError):
                continue
            display = item.get("display_name") or ""
            if accept_result(lat, lon, display):
                return GeocodeResult(lat, lon, display)
        return None

    async def geocode(self, address: str) -> Optional[GeocodeResult]:
        """
        Resolve `address` or return None. Never raises for provider problems:
        a deployment without coordinates is recoverable, a failed cycle isn't.
        """
        verified = get_verified_coordinates(address)
        if verified:
            log.info("Verified coordinates", extra={"address": address})
            return GeocodeResult(verified.latitude, verified.longitude, verified.address)

        if "&" in (address or ""):
            queries = intersection_queries(address)
        else:
            queries = direct_queries(address)

        async with self._session() as client:
            for query in queries:
                try:
                    result = await self._search(client, query)
                except GeocodeError as exc:
                    log.warning("Geocode attempt failed: %s", exc.message, extra=exc.to_dict())
                    continue
                if result:
                    log.info("Geocoded %s via %r", address, query)
                    return result

        log.info("No in-bounds geocode result for %s", address)
        return None

    async def batch_geocode(self, addresses: Iterable[str]) -> Dict[str, GeocodeResult]:
        results: Dict[str, GeocodeResult] = {}
        for address in addresses:
            result = await self.geocode(address)
            if result:
                results[address] = result
        return results


__all__ = [
    "GeocodeResult",
    "Geocoder",
    "accept_result",
    "direct_queries",
    "extract_street_name",
    "intersection_queries",
    "mentions_municipality",
]
