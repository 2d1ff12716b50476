from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from coverdesk.schemas.scheduling import SlotStatus, blank_to_none
from coverdesk.services.intervals import Weekday, check_teaching_window, coerce_minutes, parse_weekday


class TimetableCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    is_active: bool = True


class TimetableOut(BaseModel):
    id: str
    name: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SlotFields(BaseModel):
    subject_code: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    instructor: str | None = Field(default=None, max_length=200)
    teacher_id: str | None = None
    classroom_id: str | None = None

    @field_validator("title", "location", "instructor", "teacher_id", "classroom_id", mode="before")
    @classmethod
    def strip_optional_text(cls, value):
        return blank_to_none(value)

    @field_validator("subject_code", mode="before")
    @classmethod
    def normalize_subject_code(cls, value):
        value = blank_to_none(value)
        return value.upper() if value else None


class SlotCreate(SlotFields):
    day: Weekday
    start_time: int
    end_time: int

    @field_validator("day", mode="before")
    @classmethod
    def validate_day(cls, value) -> Weekday:
        return parse_weekday(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value) -> int:
        return coerce_minutes(value)

    @model_validator(mode="after")
    def validate_window(self) -> "SlotCreate":
        check_teaching_window(self.start_time, self.end_time)
        return self


class SlotUpdate(SlotFields):
    """Partial slot edit; the merged result is re-validated against the teaching window."""

    day: Weekday | None = None
    start_time: int | None = None
    end_time: int | None = None

    @field_validator("day", mode="before")
    @classmethod
    def validate_day(cls, value):
        if value is None:
            return None
        return parse_weekday(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value):
        if value is None:
            return None
        return coerce_minutes(value)


class SlotOut(BaseModel):
    id: str
    timetable_id: str
    day: Weekday
    start_time: int
    end_time: int
    subject_code: str | None
    title: str | None
    location: str | None
    instructor: str | None
    teacher_id: str | None
    classroom_id: str | None
    status: SlotStatus
    substitution_request_id: str | None = None

    model_config = {"from_attributes": True}
