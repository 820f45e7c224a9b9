"""
Pull the weekly mobile-camera schedule out of the city's enforcement page.

The page is hand-edited and changes shape without notice, so two layouts are
handled:
  A) a "Mobile Camera Locations:" block with a date range and one list item
     (or paragraph) per day, e.g. "Monday: 5800 Eastern Ave – 1900 Brady St."
  B) anything else: the whole page text is scanned for "<Day>: ..." runs.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from bs4 import BeautifulSoup

from worker.address_parser import split_addresses

DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_DAY_ALT = "|".join(DAYS)

_DAY_PREFIX = re.compile(rf"^\s*({_DAY_ALT})\s*:", re.IGNORECASE)
_DAY_RUN = re.compile(
    rf"\b({_DAY_ALT})\s*:\s*(.+?)(?=\b(?:{_DAY_ALT})\s*:|\n|$)",
    re.IGNORECASE,
)
_SECTION_MARKER = re.compile(r"mobile\s+camera\s+locations", re.IGNORECASE)

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)
_DAY_NUM = r"\d{1,2}(?:st|nd|rd|th)?"
_YEAR = r"(?:\s*,?\s*\d{4})?"
DATE_RANGE = re.compile(
    r"\d{1,2}/\d{1,2}(?:/\d{2,4})?\s*[-–]\s*\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    rf"|{_MONTH}\s+{_DAY_NUM}{_YEAR}\s*[-–]\s*(?:{_MONTH}\s+)?{_DAY_NUM}{_YEAR}",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


class ScheduleEntry(NamedTuple):
    day: str
    addresses: List[str]
    schedule_label: str


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def find_date_range(text: str) -> str:
    match = DATE_RANGE.search(text or "")
    return _clean(match.group(0)) if match else ""


def schedule_label(day: str, date_range: str = "") -> str:
    return f"{day} ({date_range})" if date_range else day


def is_schedule_line(text: str) -> bool:
    return bool(_DAY_PREFIX.match(text or ""))


def parse_schedule_line(text: str, date_range: str = "") -> Optional[ScheduleEntry]:
    """Parse "Monday: addr – addr" into a ScheduleEntry, or None if it isn't one."""
    match = _DAY_PREFIX.match(text or "")
    if not match:
        return None
    day = match.group(1).capitalize()
    remainder = _clean(text[match.end():])
    addresses = split_addresses(remainder)
    if not addresses:
        return None
    return ScheduleEntry(day, addresses, schedule_label(day, date_range))


def _find_schedule_section(soup: BeautifulSoup):
    marker = soup.find(string=_SECTION_MARKER)
    if marker is None:
        return None
    node = marker.parent
    while node is not None and node.name != "[document]":
        if any(is_schedule_line(line) for el in node.find_all(["li", "p"]) for line in _lines(el)):
            return node
        node = node.parent
    return None


def _lines(el) -> List[str]:
    """Visible lines of one element; <br> already became "\\n"."""
    return [line for line in (_clean(part) for part in el.get_text().split("\n")) if line]


def _runs(text: str, date_range: str) -> List[ScheduleEntry]:
    entries = []
    for match in _DAY_RUN.finditer(text or ""):
        day = match.group(1).capitalize()
        addresses = split_addresses(_clean(match.group(2)))
        if addresses:
            entries.append(ScheduleEntry(day, addresses, schedule_label(day, date_range)))
    return entries


def extract_from_markup(soup: BeautifulSoup) -> List[ScheduleEntry]:
    """Layout A. Returns [] when the expected block is missing."""
    section = _find_schedule_section(soup)
    if section is None:
        return []

    date_range = find_date_range(section.get_text(" "))
    entries: List[ScheduleEntry] = []
    seen_lines = set()
    for el in section.find_all(["li", "p"]):
        for line in _lines(el):
            if line in seen_lines or not is_schedule_line(line):
                continue
            seen_lines.add(line)
            # one line can carry several days: "Monday: A Tuesday: B"
            entries.extend(_runs(line, date_range))
    return entries


def extract_from_text(text: str) -> List[ScheduleEntry]:
    """Layout B: scan free text for "<Day>: ..." runs."""
    return _runs(text, find_date_range(text))


def extract_schedule(html: str) -> List[ScheduleEntry]:
    """Structured markup first, whole-page text scan as the fallback."""
    soup = BeautifulSoup(html or "", "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")

    entries = extract_from_markup(soup)
    if entries:
        return entries
    body = soup.body or soup
    return extract_from_text(body.get_text("\n"))


__all__ = [
    "DATE_RANGE",
    "DAYS",
    "ScheduleEntry",
    "extract_from_markup",
    "extract_from_text",
    "extract_schedule",
    "find_date_range",
    "is_schedule_line",
    "parse_schedule_line",
    "schedule_label",
]
