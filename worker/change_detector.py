"""
Decide whether a freshly scraped location list differs from the stored snapshot.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, List, Tuple

from worker.address_parser import normalize_address


def _field(item: Any, name: str) -> str:
    if isinstance(item, dict):
        return item.get(name) or ""
    return getattr(item, name, "") or ""


def _normalize_schedule(schedule: str) -> str:
    # whitespace only; a case change in the published schedule is a real edit
    return " ".join(schedule.split())


def _keys(items: Iterable[Any]) -> List[Tuple[str, str]]:
    return [
        (normalize_address(_field(i, "address")), _normalize_schedule(_field(i, "schedule")))
        for i in items
    ]


def has_changed(current: Iterable[Any], stored: Iterable[Any]) -> bool:
    """
    Compare by count, then by normalized address set, then by the multiset of
    (address, schedule) pairs. Works on ScrapedLocation objects or row dicts.
    """
    current_keys = _keys(current)
    stored_keys = _keys(stored)

    if len(current_keys) != len(stored_keys):
        return True

    if {a for a, _ in current_keys} != {a for a, _ in stored_keys}:
        return True

    return Counter(current_keys) != Counter(stored_keys)


__all__ = ["has_changed"]
