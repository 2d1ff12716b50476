from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db
from coverdesk.core.exceptions import ResourceNotFoundError
from coverdesk.models.availability import TeacherAvailability
from coverdesk.models.teacher import Teacher
from coverdesk.schemas.scheduling import TeacherStatus
from coverdesk.schemas.teacher import AvailabilityCreate, AvailabilityOut, TeacherCreate, TeacherOut, TeacherUpdate
from coverdesk.services.audit import log_activity

router = APIRouter()


def _get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    return teacher


@router.get("/", response_model=list[TeacherOut])
def list_teachers(
    teacher_status: TeacherStatus | None = Query(default=None, alias="status"),
    subject: str | None = Query(default=None, max_length=50),
    db: Session = Depends(get_db),
) -> list[TeacherOut]:
    query = select(Teacher).order_by(Teacher.employee_code)
    if teacher_status is not None:
        query = query.where(Teacher.status == teacher_status)
    teachers = list(db.execute(query).scalars())
    if subject:
        code = subject.strip().upper()
        teachers = [item for item in teachers if code in (item.subjects or [])]
    return teachers


@router.post("/", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(payload: TeacherCreate, db: Session = Depends(get_db)) -> TeacherOut:
    existing = db.execute(
        select(Teacher).where(Teacher.employee_code == payload.employee_code)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee code already exists")
    if payload.email:
        taken = db.execute(select(Teacher).where(Teacher.email == payload.email)).scalar_one_or_none()
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher email already exists")
    teacher = Teacher(**payload.model_dump())
    db.add(teacher)
    db.flush()
    log_activity(
        db,
        actor=None,
        action="teacher.created",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"employee_code": teacher.employee_code},
    )
    db.commit()
    db.refresh(teacher)
    return teacher


@router.get("/{teacher_id}", response_model=TeacherOut)
def get_teacher(teacher_id: str, db: Session = Depends(get_db)) -> TeacherOut:
    return _get_teacher(db, teacher_id)


@router.put("/{teacher_id}", response_model=TeacherOut)
def update_teacher(teacher_id: str, payload: TeacherUpdate, db: Session = Depends(get_db)) -> TeacherOut:
    teacher = _get_teacher(db, teacher_id)
    changes = payload.model_dump(exclude_unset=True)
    min_minutes = changes.get("min_weekly_minutes", teacher.min_weekly_minutes)
    max_minutes = changes.get("max_weekly_minutes", teacher.max_weekly_minutes)
    if min_minutes is not None and max_minutes is not None and min_minutes > max_minutes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="min_weekly_minutes cannot exceed max_weekly_minutes",
        )
    for key, value in changes.items():
        if value is None and key in {"full_name", "subjects", "max_weekly_minutes", "min_weekly_minutes", "status"}:
            continue
        setattr(teacher, key, value)
    log_activity(
        db,
        actor=None,
        action="teacher.updated",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"changes": sorted(changes)},
    )
    db.commit()
    db.refresh(teacher)
    return teacher


@router.get("/{teacher_id}/availability", response_model=list[AvailabilityOut])
def list_availability(teacher_id: str, db: Session = Depends(get_db)) -> list[AvailabilityOut]:
    _get_teacher(db, teacher_id)
    query = (
        select(TeacherAvailability)
        .where(TeacherAvailability.teacher_id == teacher_id)
        .order_by(TeacherAvailability.on_date, TeacherAvailability.start_time)
    )
    return list(db.execute(query).scalars())


@router.post(
    "/{teacher_id}/availability",
    response_model=AvailabilityOut,
    status_code=status.HTTP_201_CREATED,
)
def create_availability(
    teacher_id: str,
    payload: AvailabilityCreate,
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    _get_teacher(db, teacher_id)
    record = TeacherAvailability(teacher_id=teacher_id, **payload.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)
    return record
