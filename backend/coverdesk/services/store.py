from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from coverdesk.core.exceptions import ConfigurationError
from coverdesk.models.availability import TeacherAvailability
from coverdesk.models.teacher import Teacher
from coverdesk.models.timetable import Timetable, TimetableSlot
from coverdesk.models.workload import TeacherWorkload
from coverdesk.schemas import scheduling as records
from coverdesk.services.intervals import Weekday

_UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


def slot_to_record(row: TimetableSlot) -> records.TimeSlot:
    return records.TimeSlot(
        id=row.id,
        timetable_id=row.timetable_id,
        day=row.day,
        start_time=row.start_time,
        end_time=row.end_time,
        subject_code=row.subject_code,
        title=row.title,
        location=row.location,
        instructor=row.instructor,
        teacher_id=row.teacher_id,
        classroom_id=row.classroom_id,
        status=row.status,
    )


def teacher_to_record(row: Teacher) -> records.Teacher:
    return records.Teacher(
        id=row.id,
        employee_code=row.employee_code,
        full_name=row.full_name,
        subjects=row.subjects or [],
        max_weekly_minutes=row.max_weekly_minutes,
        min_weekly_minutes=row.min_weekly_minutes,
        status=row.status,
    )


def availability_to_record(row: TeacherAvailability) -> records.AvailabilityRecord:
    return records.AvailabilityRecord(
        teacher_id=row.teacher_id,
        on_date=row.on_date,
        start_time=row.start_time,
        end_time=row.end_time,
        type=row.type,
        reason=row.reason,
    )


class SchedulingStore:
    """Database-backed source of slots, teachers, workload and availability.

    Its only writes are the workload row lock and upsert, which belong to the
    workload tracker.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_slot(self, slot_id: str) -> records.TimeSlot | None:
        row = self.db.get(TimetableSlot, slot_id)
        return slot_to_record(row) if row is not None else None

    def timetable_slots(self, timetable_id: str) -> list[records.TimeSlot]:
        query = (
            select(TimetableSlot)
            .where(TimetableSlot.timetable_id == timetable_id)
            .order_by(TimetableSlot.day, TimetableSlot.start_time, TimetableSlot.id)
        )
        return [slot_to_record(row) for row in self.db.execute(query).scalars()]

    def teacher_slots(self, teacher_id: str) -> list[records.TimeSlot]:
        query = (
            select(TimetableSlot)
            .join(Timetable, Timetable.id == TimetableSlot.timetable_id)
            .where(TimetableSlot.teacher_id == teacher_id, Timetable.is_active.is_(True))
        )
        return [slot_to_record(row) for row in self.db.execute(query).scalars()]

    def slots_on_day(self, day: Weekday) -> list[records.TimeSlot]:
        query = (
            select(TimetableSlot)
            .join(Timetable, Timetable.id == TimetableSlot.timetable_id)
            .where(TimetableSlot.day == day, Timetable.is_active.is_(True))
        )
        return [slot_to_record(row) for row in self.db.execute(query).scalars()]

    def get_teacher(self, teacher_id: str) -> records.Teacher | None:
        row = self.db.get(Teacher, teacher_id)
        return teacher_to_record(row) if row is not None else None

    def list_teachers(self, *, active_only: bool = False) -> list[records.Teacher]:
        query = select(Teacher).order_by(Teacher.employee_code)
        if active_only:
            query = query.where(Teacher.status == records.TeacherStatus.active)
        return [teacher_to_record(row) for row in self.db.execute(query).scalars()]

    def lock_teacher(self, teacher_id: str) -> None:
        # Row lock held until the caller commits; SQLite serialises writers itself.
        self.db.execute(select(Teacher.id).where(Teacher.id == teacher_id).with_for_update()).first()

    def workload_row(self, teacher_id: str, week_start: date) -> TeacherWorkload | None:
        query = (
            select(TeacherWorkload)
            .where(
                TeacherWorkload.teacher_id == teacher_id,
                TeacherWorkload.week_start == week_start,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(query).scalar_one_or_none()

    def workload_snapshot(self, week_start: date) -> dict[str, int]:
        query = select(TeacherWorkload.teacher_id, TeacherWorkload.assigned_minutes).where(
            TeacherWorkload.week_start == week_start
        )
        return {teacher_id: minutes for teacher_id, minutes in self.db.execute(query)}

    def upsert_workload(self, teacher_id: str, week_start: date, assigned_minutes: int) -> TeacherWorkload:
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise ConfigurationError(f"Workload upsert is not supported on {dialect}")
        statement = insert(TeacherWorkload).values(
            id=str(uuid.uuid4()),
            teacher_id=teacher_id,
            week_start=week_start,
            assigned_minutes=assigned_minutes,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[TeacherWorkload.teacher_id, TeacherWorkload.week_start],
            set_={"assigned_minutes": statement.excluded.assigned_minutes, "updated_at": func.now()},
        )
        self.db.execute(statement)
        return self.workload_row(teacher_id, week_start)

    def unavailability_on(self, on_date: date) -> list[records.AvailabilityRecord]:
        query = select(TeacherAvailability).where(
            TeacherAvailability.on_date == on_date,
            TeacherAvailability.type == records.AvailabilityType.unavailable,
        )
        return [availability_to_record(row) for row in self.db.execute(query).scalars()]

    def workload_weeks(self, teacher_id: str) -> list[date]:
        query = (
            select(TeacherWorkload.week_start)
            .where(TeacherWorkload.teacher_id == teacher_id)
            .order_by(TeacherWorkload.week_start)
        )
        return list(self.db.execute(query).scalars())
