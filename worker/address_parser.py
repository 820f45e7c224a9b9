"""
Split the free-text location runs the city publishes into discrete addresses.

"5800 Eastern Ave – 1900 Brady St." -> ["5800 Eastern Ave", "1900 Brady St."]
"""
from __future__ import annotations

import re
from typing import List

MIN_ADDRESS_LENGTH = 5

# en-dash, hyphen, ampersand, or the word "and"
_DELIMITERS = re.compile(r"\s*[–\-&]\s*|\s+and\s+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def split_addresses(text: str) -> List[str]:
    """
    Split a combined location string into individual addresses.

    Fragments shorter than MIN_ADDRESS_LENGTH are delimiter debris and are
    dropped. If fewer than two usable fragments remain the trimmed input is
    returned unchanged as a single address.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return []

    parts = [p.strip() for p in _DELIMITERS.split(cleaned)]
    parts = [p for p in parts if len(p) >= MIN_ADDRESS_LENGTH]

    if len(parts) <= 1:
        return [cleaned]
    return parts


def is_combined_address(address: str) -> bool:
    return len(split_addresses(address)) > 1


def normalize_address(address: str) -> str:
    """Comparison key: case- and whitespace-insensitive."""
    return _WHITESPACE.sub(" ", (address or "")).strip().lower()


__all__ = [
    "MIN_ADDRESS_LENGTH",
    "is_combined_address",
    "normalize_address",
    "split_addresses",
]
