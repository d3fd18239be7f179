"""Opening-hours parsing for the free-text weekly schedule on each brewery."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .models import BreweryRecord

DAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_RANGE_PATTERNS = (
    re.compile(r"(\d{1,2}:\d{2}\s*[AP]M?)\s*-\s*(\d{1,2}:\d{2}\s*[AP]M?)", re.IGNORECASE),
    re.compile(r"(\d{1,2}:\d{2})\s*-\s*(\d{1,2}:\d{2})"),
    re.compile(r"(\d{1,2}:\d{2})\s*to\s*(\d{1,2}:\d{2})", re.IGNORECASE),
)
_TWENTY_FOUR_HOUR_RE = re.compile(r"^\d{1,2}:\d{2}$")
_TWELVE_HOUR_RE = re.compile(r"(\d{1,2}):(\d{2})\s*([AP]M?)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class OpeningTime:
    day: str
    time: str


@dataclass(frozen=True, slots=True)
class BreweryStatus:
    status: str
    message: str
    next_open: Optional[OpeningTime] = None


def day_name(moment: datetime) -> str:
    # datetime.weekday() counts from Monday.
    return DAYS[(moment.weekday() + 1) % 7]


def normalize_time(value: str) -> str:
    """Return ``value`` as 24-hour ``HH:MM`` where it can be understood."""

    trimmed = value.strip()
    if _TWENTY_FOUR_HOUR_RE.match(trimmed):
        hours, minutes = trimmed.split(":")
        return f"{hours.zfill(2)}:{minutes}"

    match = _TWELVE_HOUR_RE.search(trimmed)
    if match:
        hours = int(match.group(1))
        minutes = match.group(2)
        meridiem = match.group(3).upper()
        if meridiem == "PM" and hours != 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes}"

    return trimmed


def parse_time_range(text: Optional[str]) -> Optional[Tuple[str, str]]:
    """Extract ``(open, close)`` from strings such as ``"11:00 AM - 9:00 PM"``."""

    if not text:
        return None
    for pattern in _RANGE_PATTERNS:
        match = pattern.search(text)
        if match:
            return normalize_time(match.group(1)), normalize_time(match.group(2))
    return None


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_time_in_range(current: str, opens: str, closes: str) -> bool:
    now, start, end = _minutes(current), _minutes(opens), _minutes(closes)
    if start <= end:
        return start <= now <= end
    # Overnight range such as 9:00 PM - 2:00 AM.
    return now >= start or now <= end


def _hours_for(brewery: BreweryRecord, day: str) -> Optional[str]:
    hours = brewery.hours.get(day)
    if not hours or "closed" in hours.lower():
        return None
    return hours


def is_open_on_day(brewery: BreweryRecord, day: str) -> bool:
    return _hours_for(brewery, day.lower()) is not None


def is_open_now(brewery: BreweryRecord, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    hours = _hours_for(brewery, day_name(now))
    if hours is None:
        return False
    time_range = parse_time_range(hours)
    if time_range is None:
        return False
    return is_time_in_range(now.strftime("%H:%M"), *time_range)


def next_opening_time(brewery: BreweryRecord, now: Optional[datetime] = None) -> Optional[OpeningTime]:
    """Return the next day/time the brewery opens, looking up to a week ahead.

    While the brewery is open, today's opening time is returned.
    """

    now = now or datetime.now()
    today = (now.weekday() + 1) % 7

    hours = _hours_for(brewery, DAYS[today])
    if hours is not None:
        time_range = parse_time_range(hours)
        if time_range and is_time_in_range(now.strftime("%H:%M"), *time_range):
            return OpeningTime(DAYS[today], time_range[0])

    for offset in range(1, 8):
        day = DAYS[(today + offset) % 7]
        hours = _hours_for(brewery, day)
        if hours is None:
            continue
        time_range = parse_time_range(hours)
        if time_range:
            return OpeningTime(day, time_range[0])
    return None


def brewery_status(brewery: BreweryRecord, now: Optional[datetime] = None) -> BreweryStatus:
    now = now or datetime.now()
    if is_open_now(brewery, now):
        return BreweryStatus("open", "Open now")
    upcoming = next_opening_time(brewery, now)
    if upcoming:
        return BreweryStatus("closed", f"Closed - Opens {upcoming.day} at {upcoming.time}", upcoming)
    return BreweryStatus("closed", "Currently closed")
