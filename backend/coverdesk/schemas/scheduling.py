from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coverdesk.services.intervals import (
    Interval,
    Weekday,
    coerce_minutes,
    check_teaching_window,
    parse_weekday,
)


class SlotStatus(str, Enum):
    scheduled = "scheduled"
    cancelled = "cancelled"
    substituted = "substituted"
    completed = "completed"


# Slots that count towards a teacher's committed minutes.
WORKLOAD_STATUSES = frozenset({SlotStatus.scheduled, SlotStatus.substituted})


class TeacherStatus(str, Enum):
    active = "active"
    on_leave = "on_leave"
    resigned = "resigned"
    suspended = "suspended"


class AvailabilityType(str, Enum):
    available = "available"
    unavailable = "unavailable"
    partial = "partial"


class Priority(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    normal = "normal"


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def normalize_subject_codes(values) -> list[str]:
    seen: set[str] = set()
    codes: list[str] = []
    for item in values or []:
        code = str(item).strip().upper()
        if not code or code in seen:
            continue
        seen.add(code)
        codes.append(code)
    return codes


class SchedulingPolicy(BaseModel):
    """Per-invocation limits handed to the engine by its caller."""

    model_config = ConfigDict(frozen=True)

    max_weekly_minutes: int = Field(default=1080, ge=1)
    min_travel_minutes: int = Field(default=15, ge=0)
    hod_min_minutes_per_week: int = Field(default=120, ge=0)


class TimeSlot(BaseModel):
    """A validated teaching period.

    Accepts ``HH:MM`` strings or integer minutes for the times and rejects
    anything outside Monday-Saturday, 09:00-17:00.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=64)
    timetable_id: str | None = None
    day: Weekday
    start_time: int
    end_time: int
    subject_code: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    instructor: str | None = Field(default=None, max_length=200)
    teacher_id: str | None = None
    classroom_id: str | None = None
    status: SlotStatus = SlotStatus.scheduled

    @field_validator("day", mode="before")
    @classmethod
    def validate_day(cls, value) -> Weekday:
        return parse_weekday(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value) -> int:
        return coerce_minutes(value)

    @field_validator("location", "instructor", "title", "teacher_id", "classroom_id", mode="before")
    @classmethod
    def strip_optional_text(cls, value):
        return blank_to_none(value)

    @field_validator("subject_code", mode="before")
    @classmethod
    def normalize_subject_code(cls, value):
        value = blank_to_none(value)
        return value.upper() if value else None

    @model_validator(mode="after")
    def validate_window(self) -> "TimeSlot":
        check_teaching_window(self.start_time, self.end_time)
        return self

    @property
    def interval(self) -> Interval:
        return Interval(day=self.day, start=self.start_time, end=self.end_time)

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def instructor_key(self) -> str | None:
        return self.instructor or self.teacher_id

    @property
    def label(self) -> str:
        return self.title or self.subject_code or self.id


class Teacher(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=64)
    employee_code: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    subjects: tuple[str, ...] = ()
    max_weekly_minutes: int = Field(default=1080, ge=0)
    min_weekly_minutes: int = Field(default=0, ge=0)
    status: TeacherStatus = TeacherStatus.active

    @field_validator("subjects", mode="before")
    @classmethod
    def normalize_subjects(cls, value) -> tuple[str, ...]:
        return tuple(normalize_subject_codes(value))

    @property
    def is_active(self) -> bool:
        return self.status == TeacherStatus.active


class WeeklyWorkload(BaseModel):
    model_config = ConfigDict(frozen=True)

    teacher_id: str
    week_start: dt.date
    assigned_minutes: int = Field(default=0, ge=0)


class AvailabilityRecord(BaseModel):
    """A dated availability entry; unset start/end means the whole day."""

    model_config = ConfigDict(frozen=True)

    teacher_id: str
    on_date: dt.date
    start_time: int | None = None
    end_time: int | None = None
    type: AvailabilityType = AvailabilityType.unavailable
    reason: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value):
        if value is None or value == "":
            return None
        return coerce_minutes(value)

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilityRecord":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def is_whole_day(self) -> bool:
        return self.start_time is None

    def interval_on(self, day: Weekday) -> Interval:
        if self.is_whole_day:
            return Interval.whole_day(day)
        return Interval(day=day, start=self.start_time, end=self.end_time)


class SubstitutionCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    teacher_id: str
    teacher_name: str
    employee_code: str
    match_score: float = Field(ge=0.0, le=1.0)
    available_minutes: int
    assigned_minutes: int = 0
    subjects: tuple[str, ...] = ()
    reason: str = ""


class SubstitutionContext(BaseModel):
    """What the absence workflow knows about a vacant slot when building a suggestion."""

    slot_id: str
    day: Weekday
    start_time: int
    end_time: int
    subject_code: str | None = None
    classroom_id: str | None = None
    classroom_name: str | None = None
    original_teacher_id: str | None = None
    subject_weight: int = Field(default=1, ge=1, le=5)
    progress_percent: float = Field(ge=0, le=100)

    @property
    def duration_minutes(self) -> int:
        return self.end_time - self.start_time
