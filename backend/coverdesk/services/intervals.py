"""Minute-of-day interval model shared by every scheduling check.

All times are integer minutes after midnight. Intervals are half-open, so a
slot ending at 10:00 and one starting at 10:00 do not overlap.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

MINUTES_PER_DAY = 24 * 60
LAST_MINUTE = MINUTES_PER_DAY - 1
BUSINESS_DAY_START = 9 * 60
BUSINESS_DAY_END = 17 * 60

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"


WEEKDAY_ORDER: tuple[Weekday, ...] = tuple(Weekday)

_DAY_ALIASES = {day.value.lower(): day for day in Weekday} | {day.value[:3].lower(): day for day in Weekday}


def parse_weekday(value: str | Weekday) -> Weekday:
    if isinstance(value, Weekday):
        return value
    day = _DAY_ALIASES.get(str(value).strip().lower())
    if day is None:
        raise ValueError(f"Invalid day value: {value!r} (only Monday-Saturday allowed)")
    return day


def weekday_for(on_date: date) -> Weekday | None:
    """Weekday of a calendar date, or None for Sunday."""
    index = on_date.weekday()
    if index >= len(WEEKDAY_ORDER):
        return None
    return WEEKDAY_ORDER[index]


def week_start_for(on_date: date) -> date:
    return on_date - timedelta(days=on_date.weekday())


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def coerce_minutes(value: int | str) -> int:
    if isinstance(value, str):
        return parse_time_to_minutes(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("Time must be minutes after midnight or HH:MM")
    if not 0 <= value <= LAST_MINUTE:
        raise ValueError(f"Minute of day out of range: {value}")
    return value


def check_teaching_window(start: int, end: int) -> None:
    if start >= end:
        raise ValueError("start_time must be before end_time")
    if start < BUSINESS_DAY_START or end > BUSINESS_DAY_END:
        raise ValueError(f"Invalid time: {minutes_to_hhmm(start)}-{minutes_to_hhmm(end)} (only 09:00-17:00 allowed)")


@dataclass(frozen=True)
class Interval:
    day: Weekday
    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < self.end <= LAST_MINUTE:
            raise ValueError(f"Invalid interval {self.start}-{self.end}")

    @classmethod
    def whole_day(cls, day: Weekday) -> Interval:
        return cls(day=day, start=0, end=LAST_MINUTE)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{self.day.value} {minutes_to_hhmm(self.start)}-{minutes_to_hhmm(self.end)}"


def overlaps(a: Interval, b: Interval) -> bool:
    return a.day == b.day and a.start < b.end and b.start < a.end
