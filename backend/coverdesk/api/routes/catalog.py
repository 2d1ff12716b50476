from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db
from coverdesk.core.exceptions import ResourceNotFoundError
from coverdesk.models.classroom import Classroom, SubjectProgress
from coverdesk.models.subject import Subject
from coverdesk.models.teacher import Teacher
from coverdesk.schemas.catalog import (
    ClassroomCreate,
    ClassroomOut,
    ProgressOut,
    ProgressUpdate,
    SubjectCreate,
    SubjectOut,
)

router = APIRouter()


@router.get("/subjects", response_model=list[SubjectOut])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectOut]:
    return list(db.execute(select(Subject).order_by(Subject.code)).scalars())


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)) -> SubjectOut:
    if db.get(Subject, payload.code) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject code already exists")
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.get("/classrooms", response_model=list[ClassroomOut])
def list_classrooms(db: Session = Depends(get_db)) -> list[ClassroomOut]:
    return list(db.execute(select(Classroom).order_by(Classroom.name)).scalars())


@router.post("/classrooms", response_model=ClassroomOut, status_code=status.HTTP_201_CREATED)
def create_classroom(payload: ClassroomCreate, db: Session = Depends(get_db)) -> ClassroomOut:
    existing = db.execute(select(Classroom).where(Classroom.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Classroom name already exists")
    if payload.hod_id and db.get(Teacher, payload.hod_id) is None:
        raise ResourceNotFoundError("Teacher", payload.hod_id)
    classroom = Classroom(**payload.model_dump())
    db.add(classroom)
    db.commit()
    db.refresh(classroom)
    return classroom


@router.put("/classrooms/{classroom_id}/progress/{subject_code}", response_model=ProgressOut)
def set_progress(
    classroom_id: str,
    subject_code: str,
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
) -> ProgressOut:
    code = subject_code.strip().upper()
    if db.get(Classroom, classroom_id) is None:
        raise ResourceNotFoundError("Classroom", classroom_id)
    if db.get(Subject, code) is None:
        raise ResourceNotFoundError("Subject", code)

    row = db.execute(
        select(SubjectProgress).where(
            SubjectProgress.classroom_id == classroom_id,
            SubjectProgress.subject_code == code,
        )
    ).scalar_one_or_none()
    if row is None:
        row = SubjectProgress(classroom_id=classroom_id, subject_code=code)
        db.add(row)
    row.progress_percent = payload.progress_percent
    db.commit()
    db.refresh(row)
    return row
