from datetime import date

from pydantic import BaseModel, Field, field_validator

from coverdesk.services.intervals import week_start_for


class WorkloadOut(BaseModel):
    teacher_id: str
    employee_code: str
    full_name: str
    week_start: date
    assigned_minutes: int
    max_weekly_minutes: int
    min_weekly_minutes: int
    remaining_minutes: int
    status: str


class WorkloadRecomputeRequest(BaseModel):
    week_start: date
    teacher_ids: list[str] | None = Field(default=None, max_length=2000)

    @field_validator("week_start")
    @classmethod
    def align_to_monday(cls, value: date) -> date:
        return week_start_for(value)


class OverloadedTeacher(BaseModel):
    teacher_id: str
    employee_code: str
    assigned_minutes: int
    max_weekly_minutes: int
    excess_minutes: int


class HodDeficit(BaseModel):
    classroom_id: str
    classroom_name: str
    hod_id: str
    taught_minutes: int
    required_minutes: int


class EnforcementReport(BaseModel):
    week_start: date
    teachers_checked: int = 0
    overloaded: list[OverloadedTeacher] = Field(default_factory=list)
    hod_deficits: list[HodDeficit] = Field(default_factory=list)

    @property
    def has_violations(self) -> bool:
        return bool(self.overloaded or self.hod_deficits)
