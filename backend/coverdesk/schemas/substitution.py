from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from coverdesk.models.availability import AvailabilitySource
from coverdesk.models.substitution_request import SubstitutionStatus
from coverdesk.schemas.scheduling import Priority
from coverdesk.services.intervals import coerce_minutes


class AbsenceReport(BaseModel):
    teacher_id: str = Field(min_length=1)
    on_date: date = Field(alias="date")
    start_time: int | None = None
    end_time: int | None = None
    reason: str | None = Field(default=None, max_length=2000)
    source: AvailabilitySource = AvailabilitySource.admin
    reported_by: str | None = Field(default=None, max_length=200)

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, value):
        if value is None or value == "":
            return None
        return coerce_minutes(value)

    @model_validator(mode="after")
    def validate_window(self) -> "AbsenceReport":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class CandidateOut(BaseModel):
    teacher_id: str
    teacher_name: str
    employee_code: str
    match_score: float
    available_minutes: int
    assigned_minutes: int
    subjects: list[str]
    reason: str


class SubstitutionRequestOut(BaseModel):
    id: str
    timetable_id: str
    time_slot_id: str
    absence_date: date
    original_teacher_id: str | None
    suggested_teacher_id: str | None
    assigned_teacher_id: str | None
    status: SubstitutionStatus
    priority: Priority
    suggestion_payload: dict
    applied_by: str | None
    applied_at: datetime | None
    rejected_by: str | None
    rejected_at: datetime | None
    rejection_reason: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AbsenceOut(BaseModel):
    availability_id: str
    teacher_id: str
    on_date: date = Field(serialization_alias="date")
    requests: list[SubstitutionRequestOut]


class ApplySubstitution(BaseModel):
    teacher_id: str | None = None
    applied_by: str | None = Field(default=None, max_length=200)


class RejectSubstitution(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)
    rejected_by: str | None = Field(default=None, max_length=200)


class CancelSubstitution(BaseModel):
    cancelled_by: str | None = Field(default=None, max_length=200)
