from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SubjectCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    weight: int = Field(default=1, ge=1, le=5)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Subject code cannot be blank")
        return code


class SubjectOut(BaseModel):
    code: str
    name: str
    weight: int

    model_config = {"from_attributes": True}


class ClassroomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    grade: str | None = Field(default=None, max_length=20)
    hod_id: str | None = None


class ClassroomOut(BaseModel):
    id: str
    name: str
    grade: str | None
    hod_id: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProgressUpdate(BaseModel):
    progress_percent: float = Field(ge=0, le=100)


class ProgressOut(BaseModel):
    classroom_id: str
    subject_code: str
    progress_percent: float

    model_config = {"from_attributes": True}
