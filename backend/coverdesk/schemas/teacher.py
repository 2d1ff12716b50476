from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from coverdesk.models.availability import AvailabilitySource
from coverdesk.schemas.scheduling import AvailabilityType, TeacherStatus, normalize_subject_codes
from coverdesk.services.intervals import coerce_minutes


class TeacherBase(BaseModel):
    employee_code: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    email: EmailStr | None = None
    subjects: list[str] = Field(default_factory=list, max_length=100)
    max_weekly_minutes: int = Field(default=1080, ge=0, le=10080)
    min_weekly_minutes: int = Field(default=0, ge=0, le=10080)
    status: TeacherStatus = TeacherStatus.active

    @field_validator("employee_code", "full_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Value cannot be blank")
        return value

    @field_validator("subjects")
    @classmethod
    def normalize_subjects(cls, value: list[str]) -> list[str]:
        return normalize_subject_codes(value)

    @model_validator(mode="after")
    def validate_bounds(self) -> "TeacherBase":
        if self.min_weekly_minutes > self.max_weekly_minutes:
            raise ValueError("min_weekly_minutes cannot exceed max_weekly_minutes")
        return self


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    subjects: list[str] | None = Field(default=None, max_length=100)
    max_weekly_minutes: int | None = Field(default=None, ge=0, le=10080)
    min_weekly_minutes: int | None = Field(default=None, ge=0, le=10080)
    status: TeacherStatus | None = None

    @field_validator("subjects")
    @classmethod
    def normalize_subjects(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return normalize_subject_codes(value)


class TeacherOut(TeacherBase):
    id: str
    email: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AvailabilityCreate(BaseModel):
    on_date: date = Field(alias="date")
    start_time: int | None = None
    end_time: int | None = None
    type: AvailabilityType = AvailabilityType.unavailable
    reason: str | None = Field(default=None, max_length=2000)
    source: AvailabilitySource = AvailabilitySource.self_reported

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, value):
        if value is None or value == "":
            return None
        return coerce_minutes(value)

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilityCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityOut(BaseModel):
    id: str
    teacher_id: str
    on_date: date = Field(serialization_alias="date")
    start_time: int | None
    end_time: int | None
    type: AvailabilityType
    reason: str | None
    source: AvailabilitySource
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
