"""
Manually verified coordinates for intersections that automatic geocoding gets wrong.

Keys are `normalize_for_lookup()` output, so "6700 Division St & 2800 Jersey
Ridge Rd." and "6700 division street & 2800 jersey ridge road" hit the same row.
"""
from __future__ import annotations

import re
from typing import Dict, NamedTuple, Optional

# Davenport, Iowa city limits (approximate)
BOUNDS = {
    "min_lat": 41.46,
    "max_lat": 41.61,
    "min_lon": -90.68,
    "max_lon": -90.50,
}

ABBREVIATIONS = {
    "st": "street",
    "ave": "avenue",
    "av": "avenue",
    "rd": "road",
    "dr": "drive",
    "blvd": "boulevard",
    "ln": "lane",
    "ct": "court",
    "pkwy": "parkway",
    "hwy": "highway",
}

_ABBREV_RE = re.compile(r"\b(" + "|".join(ABBREVIATIONS) + r")\b")
_WHITESPACE = re.compile(r"\s+")


class VerifiedLocation(NamedTuple):
    address: str
    latitude: float
    longitude: float


def normalize_for_lookup(address: str) -> str:
    """Lower-case, drop periods, expand street-type abbreviations, collapse whitespace."""
    text = (address or "").lower().replace(".", "")
    text = _ABBREV_RE.sub(lambda m: ABBREVIATIONS[m.group(1)], text)
    return _WHITESPACE.sub(" ", text).strip()


_VERIFIED = [
    VerifiedLocation("6700 Division St & 2800 Jersey Ridge Rd.", 41.5419, -90.5434),
    VerifiedLocation("4600 Eastern Ave & 2100 Marquette St", 41.5598, -90.5812),
    VerifiedLocation("1000 W 53rd St & 3100 Harrison St.", 41.5672, -90.5735),
    VerifiedLocation("3500 Harrison St & 1500 E Locust St.", 41.5384, -90.5542),
    VerifiedLocation("2400 Brady St & 4200 Eastern Ave", 41.5484, -90.5944),
]

VERIFIED_COORDINATES: Dict[str, VerifiedLocation] = {
    normalize_for_lookup(loc.address): loc for loc in _VERIFIED
}


def get_verified_coordinates(address: str) -> Optional[VerifiedLocation]:
    return VERIFIED_COORDINATES.get(normalize_for_lookup(address))


def is_within_bounds(latitude: float, longitude: float) -> bool:
    return (
        BOUNDS["min_lat"] <= latitude <= BOUNDS["max_lat"]
        and BOUNDS["min_lon"] <= longitude <= BOUNDS["max_lon"]
    )


__all__ = [
    "ABBREVIATIONS",
    "BOUNDS",
    "VERIFIED_COORDINATES",
    "VerifiedLocation",
    "get_verified_coordinates",
    "is_within_bounds",
    "normalize_for_lookup",
]
