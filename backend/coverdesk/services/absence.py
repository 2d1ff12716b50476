"""Absence reporting and the substitution request lifecycle.

``report_absence`` vacates the absent teacher's slots and files one request
per slot. A request moves ``open``/``suggested`` -> ``applied | rejected |
cancelled`` and never back. Functions flush but leave the commit to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.core.exceptions import (
    InvalidTransitionError,
    ResourceNotFoundError,
    SchedulingConflictError,
    WorkloadCapError,
)
from coverdesk.models.availability import AvailabilitySource, TeacherAvailability
from coverdesk.models.classroom import Classroom, SubjectProgress
from coverdesk.models.notification import NotificationAudience, NotificationType
from coverdesk.models.subject import Subject
from coverdesk.models.substitution_request import SubstitutionRequest, SubstitutionStatus
from coverdesk.models.teacher import Teacher
from coverdesk.models.timetable import TimetableSlot
from coverdesk.schemas.scheduling import (
    AvailabilityRecord,
    AvailabilityType,
    Priority,
    SchedulingPolicy,
    SlotStatus,
    SubstitutionCandidate,
    SubstitutionContext,
    TimeSlot,
)
from coverdesk.services.audit import log_activity
from coverdesk.services.intervals import minutes_to_hhmm, overlaps, week_start_for, weekday_for
from coverdesk.services.notifications import create_notification, notify_admins, notify_teachers
from coverdesk.services.priority import classify
from coverdesk.services.ranking import (
    DEFAULT_CANDIDATE_LIMIT,
    build_suggestion_payload,
    effective_cap,
    find_eligible,
)
from coverdesk.services.store import SchedulingStore, slot_to_record
from coverdesk.services.workload import WorkloadTracker, would_exceed_cap

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({SubstitutionStatus.open, SubstitutionStatus.suggested})


@dataclass
class AbsenceOutcome:
    availability: TeacherAvailability
    requests: list[SubstitutionRequest] = field(default_factory=list)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_request(db: Session, request_id: str) -> SubstitutionRequest:
    request = db.get(SubstitutionRequest, request_id)
    if request is None:
        raise ResourceNotFoundError("SubstitutionRequest", request_id)
    return request


def _require_pending(request: SubstitutionRequest, target: SubstitutionStatus) -> None:
    if request.status not in PENDING_STATUSES:
        raise InvalidTransitionError("SubstitutionRequest", request.status.value, target.value)


def build_context(db: Session, slot: TimeSlot) -> SubstitutionContext:
    weight = 1
    progress = 0.0
    classroom_name = None
    if slot.subject_code:
        subject = db.get(Subject, slot.subject_code)
        if subject is not None:
            weight = subject.weight
    if slot.classroom_id:
        classroom = db.get(Classroom, slot.classroom_id)
        classroom_name = classroom.name if classroom is not None else None
        if slot.subject_code:
            row = db.execute(
                select(SubjectProgress).where(
                    SubjectProgress.classroom_id == slot.classroom_id,
                    SubjectProgress.subject_code == slot.subject_code,
                )
            ).scalar_one_or_none()
            if row is None:
                logger.info(
                    "No progress recorded for classroom %s in %s; treating as 0%%",
                    slot.classroom_id,
                    slot.subject_code,
                )
            else:
                progress = row.progress_percent

    return SubstitutionContext(
        slot_id=slot.id,
        day=slot.day,
        start_time=slot.start_time,
        end_time=slot.end_time,
        subject_code=slot.subject_code,
        classroom_id=slot.classroom_id,
        classroom_name=classroom_name,
        original_teacher_id=slot.teacher_id,
        subject_weight=weight,
        progress_percent=progress,
    )


def _payload_for(
    candidates: list[SubstitutionCandidate],
    context: SubstitutionContext,
    priority: Priority,
) -> dict:
    if not candidates:
        return {
            "suggested_teacher_id": None,
            "priority": priority.value,
            "reasoning": "No eligible substitute under the weekly cap",
            "alternatives": [],
            "timestamp": _utc_now().isoformat(),
        }
    payload = build_suggestion_payload(candidates[0], context, priority)
    payload["alternatives"] = [
        {
            "teacher_id": item.teacher_id,
            "employee_code": item.employee_code,
            "match_score": item.match_score,
            "available_minutes": item.available_minutes,
        }
        for item in candidates[1:]
    ]
    return payload


def _hod_for(db: Session, classroom_id: str | None) -> str | None:
    if not classroom_id:
        return None
    classroom = db.get(Classroom, classroom_id)
    return classroom.hod_id if classroom is not None else None


def report_absence(
    db: Session,
    *,
    teacher_id: str,
    on_date: date,
    start_time: int | None = None,
    end_time: int | None = None,
    reason: str | None = None,
    source: AvailabilitySource = AvailabilitySource.admin,
    actor: str | None = None,
    policy: SchedulingPolicy | None = None,
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> AbsenceOutcome:
    policy = policy or SchedulingPolicy()
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)

    window = AvailabilityRecord(
        teacher_id=teacher_id,
        on_date=on_date,
        start_time=start_time,
        end_time=end_time,
        type=AvailabilityType.unavailable,
        reason=reason,
    )
    availability = TeacherAvailability(
        teacher_id=teacher_id,
        on_date=on_date,
        start_time=window.start_time,
        end_time=window.end_time,
        type=AvailabilityType.unavailable,
        reason=reason,
        source=source,
    )
    db.add(availability)
    db.flush()

    outcome = AbsenceOutcome(availability=availability)
    day = weekday_for(on_date)
    if day is None:
        logger.info("Absence for %s on %s falls on a Sunday; no slots to cover", teacher.employee_code, on_date)
        return outcome

    store = SchedulingStore(db)
    absence_interval = window.interval_on(day)
    affected = sorted(
        (
            slot
            for slot in store.teacher_slots(teacher_id)
            if slot.day == day and slot.status == SlotStatus.scheduled and overlaps(slot.interval, absence_interval)
        ),
        key=lambda item: (item.start_time, item.id),
    )

    hod_notices: dict[str, list[str]] = {}
    for slot in affected:
        candidates = find_eligible(
            store,
            slot,
            on_date,
            limit=candidate_limit,
            policy=policy,
        )
        context = build_context(db, slot)
        priority = classify(context.progress_percent, context.subject_weight)
        top = candidates[0] if candidates else None

        request = SubstitutionRequest(
            timetable_id=slot.timetable_id,
            time_slot_id=slot.id,
            absence_date=on_date,
            original_teacher_id=teacher_id,
            suggested_teacher_id=top.teacher_id if top else None,
            status=SubstitutionStatus.suggested if top else SubstitutionStatus.open,
            priority=priority,
            suggestion_payload=_payload_for(candidates, context, priority),
        )
        db.add(request)
        db.flush()

        slot_row = db.get(TimetableSlot, slot.id)
        slot_row.status = SlotStatus.cancelled
        slot_row.substitution_request_id = request.id
        outcome.requests.append(request)

        hod_id = _hod_for(db, slot.classroom_id)
        if hod_id and hod_id != teacher_id:
            hod_notices.setdefault(hod_id, []).append(
                f"{slot.label} {minutes_to_hhmm(slot.start_time)}-{minutes_to_hhmm(slot.end_time)} ({priority.value})"
            )
        logger.info(
            "Substitution request %s for slot %s: %s, priority %s",
            request.id,
            slot.id,
            request.status.value,
            priority.value,
        )

    db.flush()
    WorkloadTracker(store).refresh([teacher_id], weeks=[on_date])

    details = {
        "teacher_id": teacher_id,
        "date": on_date.isoformat(),
        "request_ids": [item.id for item in outcome.requests],
    }
    notify_admins(
        db,
        title="Absence reported",
        message=(
            f"{teacher.full_name} is unavailable on {on_date.isoformat()}; "
            f"{len(outcome.requests)} slot(s) need cover."
        ),
        notification_type=NotificationType.absence_reported,
        details=details,
    )
    create_notification(
        db,
        audience=NotificationAudience.teacher,
        recipient_id=teacher_id,
        title="Absence recorded",
        message=f"Your absence on {on_date.isoformat()} was recorded; {len(outcome.requests)} slot(s) vacated.",
        notification_type=NotificationType.absence_reported,
        details=details,
    )
    suggested_ids = sorted({item.suggested_teacher_id for item in outcome.requests if item.suggested_teacher_id})
    if suggested_ids:
        notify_teachers(
            db,
            teacher_ids=suggested_ids,
            title="Cover suggested",
            message=f"You were suggested to cover for {teacher.full_name} on {on_date.isoformat()}.",
            notification_type=NotificationType.substitution_suggested,
            details=details,
        )
    for hod_id, lines in sorted(hod_notices.items()):
        notify_teachers(
            db,
            teacher_ids=[hod_id],
            title="Class cover needed",
            message=f"{teacher.full_name} is absent on {on_date.isoformat()}: " + "; ".join(lines),
            notification_type=NotificationType.substitution_suggested,
            details=details,
        )
    log_activity(
        db,
        actor=actor,
        action="absence.reported",
        entity_type="teacher",
        entity_id=teacher_id,
        details=details,
    )
    return outcome


def apply_substitution(
    db: Session,
    request_id: str,
    *,
    teacher_id: str | None = None,
    actor: str | None = None,
    policy: SchedulingPolicy | None = None,
) -> SubstitutionRequest:
    policy = policy or SchedulingPolicy()
    request = _get_request(db, request_id)
    _require_pending(request, SubstitutionStatus.applied)

    chosen_id = teacher_id or request.suggested_teacher_id
    if not chosen_id:
        raise SchedulingConflictError(
            "No substitute selected for this request",
            details={"request_id": request.id},
        )
    if chosen_id == request.original_teacher_id:
        raise SchedulingConflictError(
            "The absent teacher cannot cover their own slot",
            details={"request_id": request.id, "teacher_id": chosen_id},
        )

    store = SchedulingStore(db)
    substitute = store.get_teacher(chosen_id)
    if substitute is None:
        raise ResourceNotFoundError("Teacher", chosen_id)
    if not substitute.is_active:
        raise SchedulingConflictError(
            f"Teacher {substitute.employee_code} is not active",
            details={"teacher_id": chosen_id, "status": substitute.status.value},
        )

    slot_row = db.get(TimetableSlot, request.time_slot_id)
    if slot_row is None:
        raise ResourceNotFoundError("TimeSlot", request.time_slot_id)
    slot = slot_to_record(slot_row)

    week_start = week_start_for(request.absence_date)
    tracker = WorkloadTracker(store)
    current = tracker.assigned_minutes(chosen_id, week_start)
    cap = effective_cap(substitute, policy)
    if would_exceed_cap(current, slot.duration, cap):
        raise WorkloadCapError(chosen_id, current + slot.duration, cap)

    eligible_ids = {
        item.teacher_id for item in find_eligible(store, slot, request.absence_date, limit=None, policy=policy)
    }
    if chosen_id not in eligible_ids:
        raise SchedulingConflictError(
            f"Teacher {substitute.employee_code} is not available for this slot",
            details={"teacher_id": chosen_id, "slot_id": slot.id, "date": request.absence_date.isoformat()},
        )

    slot_row.teacher_id = chosen_id
    slot_row.status = SlotStatus.substituted
    if slot_row.instructor:
        slot_row.instructor = substitute.full_name
    request.status = SubstitutionStatus.applied
    request.assigned_teacher_id = chosen_id
    request.applied_by = actor
    request.applied_at = _utc_now()
    db.flush()

    tracker.refresh([request.original_teacher_id, chosen_id], weeks=[week_start])

    details = {"request_id": request.id, "slot_id": slot.id, "teacher_id": chosen_id}
    notify_teachers(
        db,
        teacher_ids=[chosen_id],
        title="Substitution assigned",
        message=(
            f"You are covering {slot.label} on {request.absence_date.isoformat()} "
            f"{minutes_to_hhmm(slot.start_time)}-{minutes_to_hhmm(slot.end_time)}."
        ),
        notification_type=NotificationType.substitution_applied,
        details=details,
    )
    notify_admins(
        db,
        title="Substitution applied",
        message=f"{substitute.full_name} assigned to {slot.label}.",
        notification_type=NotificationType.substitution_applied,
        details=details,
    )
    log_activity(
        db,
        actor=actor,
        action="substitution.applied",
        entity_type="substitution_request",
        entity_id=request.id,
        details=details,
    )
    logger.info("Substitution request %s applied: teacher %s", request.id, substitute.employee_code)
    return request


def reject_substitution(
    db: Session,
    request_id: str,
    *,
    reason: str | None = None,
    actor: str | None = None,
) -> SubstitutionRequest:
    request = _get_request(db, request_id)
    _require_pending(request, SubstitutionStatus.rejected)

    request.status = SubstitutionStatus.rejected
    request.rejected_by = actor
    request.rejected_at = _utc_now()
    request.rejection_reason = reason
    db.flush()
    log_activity(
        db,
        actor=actor,
        action="substitution.rejected",
        entity_type="substitution_request",
        entity_id=request.id,
        details={"reason": reason},
    )
    return request


def cancel_substitution(
    db: Session,
    request_id: str,
    *,
    actor: str | None = None,
) -> SubstitutionRequest:
    """Withdraw a pending request and give the slot back to its original teacher."""
    request = _get_request(db, request_id)
    _require_pending(request, SubstitutionStatus.cancelled)

    request.status = SubstitutionStatus.cancelled
    slot_row = db.get(TimetableSlot, request.time_slot_id)
    if slot_row is not None and slot_row.substitution_request_id == request.id:
        slot_row.status = SlotStatus.scheduled
        slot_row.substitution_request_id = None
    db.flush()

    WorkloadTracker(SchedulingStore(db)).refresh([request.original_teacher_id], weeks=[request.absence_date])
    log_activity(
        db,
        actor=actor,
        action="substitution.cancelled",
        entity_type="substitution_request",
        entity_id=request.id,
    )
    return request


def list_requests(
    db: Session,
    *,
    status: SubstitutionStatus | None = None,
    timetable_id: str | None = None,
) -> list[SubstitutionRequest]:
    query = select(SubstitutionRequest).order_by(SubstitutionRequest.created_at.desc(), SubstitutionRequest.id)
    if status is not None:
        query = query.where(SubstitutionRequest.status == status)
    if timetable_id is not None:
        query = query.where(SubstitutionRequest.timetable_id == timetable_id)
    return list(db.execute(query).scalars())
