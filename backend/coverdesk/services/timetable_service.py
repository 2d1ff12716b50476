"""Slot writes and stored conflict sets for a timetable.

Every write that can change a teacher's committed minutes refreshes that
teacher's workload rows before returning.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from coverdesk.core.exceptions import (
    InvalidSlotError,
    InvalidTransitionError,
    ResourceNotFoundError,
    SchedulingConflictError,
)
from coverdesk.models.classroom import Classroom
from coverdesk.models.conflict import TimetableConflict
from coverdesk.models.notification import NotificationType
from coverdesk.models.subject import Subject
from coverdesk.models.substitution_request import SubstitutionRequest
from coverdesk.models.teacher import Teacher
from coverdesk.models.timetable import Timetable, TimetableSlot
from coverdesk.schemas.conflict import ConflictReport
from coverdesk.schemas.scheduling import SchedulingPolicy, SlotStatus
from coverdesk.schemas.timetable import SlotCreate, SlotUpdate
from coverdesk.services.audit import log_activity
from coverdesk.services.conflict_service import conflict_sort_key, detect
from coverdesk.services.intervals import check_teaching_window
from coverdesk.services.notifications import notify_admins
from coverdesk.services.store import SchedulingStore
from coverdesk.services.workload import WorkloadTracker

logger = logging.getLogger(__name__)


def get_timetable(db: Session, timetable_id: str) -> Timetable:
    timetable = db.get(Timetable, timetable_id)
    if timetable is None:
        raise ResourceNotFoundError("Timetable", timetable_id)
    return timetable


def get_slot(db: Session, slot_id: str) -> TimetableSlot:
    slot = db.get(TimetableSlot, slot_id)
    if slot is None:
        raise ResourceNotFoundError("TimeSlot", slot_id)
    return slot


def _check_references(
    db: Session,
    *,
    teacher_id: str | None,
    classroom_id: str | None,
    subject_code: str | None,
) -> None:
    if teacher_id and db.get(Teacher, teacher_id) is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    if classroom_id and db.get(Classroom, classroom_id) is None:
        raise ResourceNotFoundError("Classroom", classroom_id)
    if subject_code and db.get(Subject, subject_code) is None:
        raise ResourceNotFoundError("Subject", subject_code)


def refresh_workload(db: Session, teacher_ids: Iterable[str | None]) -> None:
    WorkloadTracker(SchedulingStore(db)).refresh(teacher_ids)


def create_slot(db: Session, timetable_id: str, payload: SlotCreate, *, actor: str | None = None) -> TimetableSlot:
    get_timetable(db, timetable_id)
    _check_references(
        db,
        teacher_id=payload.teacher_id,
        classroom_id=payload.classroom_id,
        subject_code=payload.subject_code,
    )
    slot = TimetableSlot(timetable_id=timetable_id, status=SlotStatus.scheduled, **payload.model_dump())
    db.add(slot)
    db.flush()
    refresh_workload(db, [slot.teacher_id])
    log_activity(
        db,
        actor=actor,
        action="slot.created",
        entity_type="time_slot",
        entity_id=slot.id,
        details={"timetable_id": timetable_id, "teacher_id": slot.teacher_id},
    )
    return slot


def update_slot(db: Session, slot_id: str, payload: SlotUpdate, *, actor: str | None = None) -> TimetableSlot:
    slot = get_slot(db, slot_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("day", "start_time", "end_time"):
        if key in changes and changes[key] is None:
            raise InvalidSlotError(f"{key} cannot be cleared", details={"field": key})

    start_time = changes.get("start_time", slot.start_time)
    end_time = changes.get("end_time", slot.end_time)
    try:
        check_teaching_window(start_time, end_time)
    except ValueError as exc:
        raise InvalidSlotError(str(exc), details={"start_time": start_time, "end_time": end_time}) from exc

    _check_references(
        db,
        teacher_id=changes.get("teacher_id"),
        classroom_id=changes.get("classroom_id"),
        subject_code=changes.get("subject_code"),
    )
    previous_teacher_id = slot.teacher_id
    for key, value in changes.items():
        setattr(slot, key, value)
    db.flush()

    refresh_workload(db, [previous_teacher_id, slot.teacher_id])
    log_activity(
        db,
        actor=actor,
        action="slot.updated",
        entity_type="time_slot",
        entity_id=slot.id,
        details={"changes": sorted(changes)},
    )
    return slot


def cancel_slot(db: Session, slot_id: str, *, actor: str | None = None) -> TimetableSlot:
    slot = get_slot(db, slot_id)
    if slot.status == SlotStatus.cancelled:
        raise InvalidTransitionError("TimeSlot", slot.status.value, SlotStatus.cancelled.value)
    slot.status = SlotStatus.cancelled
    db.flush()
    refresh_workload(db, [slot.teacher_id])
    log_activity(db, actor=actor, action="slot.cancelled", entity_type="time_slot", entity_id=slot.id)
    return slot


def delete_slot(db: Session, slot_id: str, *, actor: str | None = None) -> None:
    slot = get_slot(db, slot_id)
    referenced = db.execute(
        select(SubstitutionRequest.id).where(SubstitutionRequest.time_slot_id == slot_id).limit(1)
    ).scalar_one_or_none()
    if referenced is not None:
        raise SchedulingConflictError(
            "Slot is referenced by a substitution request; cancel it instead",
            details={"slot_id": slot_id, "request_id": referenced},
        )
    teacher_id = slot.teacher_id
    db.delete(slot)
    db.flush()
    refresh_workload(db, [teacher_id])
    log_activity(db, actor=actor, action="slot.deleted", entity_type="time_slot", entity_id=slot_id)


def detect_and_store_conflicts(
    db: Session,
    timetable_id: str,
    policy: SchedulingPolicy | None = None,
) -> ConflictReport:
    """Run detection over a timetable and replace its stored conflict set."""
    policy = policy or SchedulingPolicy()
    get_timetable(db, timetable_id)
    slots = SchedulingStore(db).timetable_slots(timetable_id)
    report = detect(slots, min_travel_minutes=policy.min_travel_minutes, include_resolutions=True)

    db.execute(delete(TimetableConflict).where(TimetableConflict.timetable_id == timetable_id))
    for conflict in report.conflicts:
        db.add(
            TimetableConflict(
                timetable_id=timetable_id,
                conflict_type=conflict.conflict_type,
                severity=conflict.severity,
                slot1_id=conflict.slot1_id,
                slot2_id=conflict.slot2_id,
                description=conflict.description,
            )
        )
    db.flush()

    if report.conflicts:
        notify_admins(
            db,
            title="Timetable conflicts detected",
            message=f"{report.summary.total_conflicts} conflict(s) found in timetable {timetable_id}.",
            notification_type=NotificationType.conflict_detected,
            details={"timetable_id": timetable_id, "by_severity": report.summary.by_severity},
        )
    logger.info("Stored %d conflict(s) for timetable %s", len(report.conflicts), timetable_id)
    return report


def stored_conflicts(db: Session, timetable_id: str) -> list[TimetableConflict]:
    get_timetable(db, timetable_id)
    query = select(TimetableConflict).where(TimetableConflict.timetable_id == timetable_id)
    return sorted(db.execute(query).scalars(), key=conflict_sort_key)
