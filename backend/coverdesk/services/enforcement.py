from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.models.classroom import Classroom
from coverdesk.models.notification import NotificationType
from coverdesk.models.timetable import Timetable, TimetableSlot
from coverdesk.schemas.scheduling import WORKLOAD_STATUSES, SchedulingPolicy
from coverdesk.schemas.workload import EnforcementReport, HodDeficit, OverloadedTeacher
from coverdesk.services.audit import log_activity
from coverdesk.services.intervals import week_start_for
from coverdesk.services.notifications import notify_admins, notify_teachers
from coverdesk.services.ranking import effective_cap
from coverdesk.services.store import SchedulingStore
from coverdesk.services.workload import WorkloadTracker

logger = logging.getLogger(__name__)


def hod_minutes_by_classroom(db: Session) -> dict[str, int]:
    """Weekly minutes each classroom's head of department teaches in that classroom."""
    query = (
        select(Classroom.id, TimetableSlot.start_time, TimetableSlot.end_time)
        .join(TimetableSlot, TimetableSlot.classroom_id == Classroom.id)
        .join(Timetable, Timetable.id == TimetableSlot.timetable_id)
        .where(
            Classroom.hod_id.is_not(None),
            TimetableSlot.teacher_id == Classroom.hod_id,
            TimetableSlot.status.in_(list(WORKLOAD_STATUSES)),
            Timetable.is_active.is_(True),
        )
    )
    minutes: dict[str, int] = defaultdict(int)
    for classroom_id, start_time, end_time in db.execute(query):
        minutes[classroom_id] += end_time - start_time
    return minutes


def enforce_workload(
    db: Session,
    week_start: date,
    policy: SchedulingPolicy | None = None,
    *,
    actor: str | None = None,
) -> EnforcementReport:
    policy = policy or SchedulingPolicy()
    week_start = week_start_for(week_start)
    store = SchedulingStore(db)
    teachers = store.list_teachers(active_only=True)
    assigned = WorkloadTracker(store).recompute_many([item.id for item in teachers], week_start)

    report = EnforcementReport(week_start=week_start, teachers_checked=len(teachers))
    for teacher in teachers:
        minutes = assigned.get(teacher.id, 0)
        cap = effective_cap(teacher, policy)
        if minutes > cap:
            report.overloaded.append(
                OverloadedTeacher(
                    teacher_id=teacher.id,
                    employee_code=teacher.employee_code,
                    assigned_minutes=minutes,
                    max_weekly_minutes=cap,
                    excess_minutes=minutes - cap,
                )
            )

    taught = hod_minutes_by_classroom(db)
    classrooms = db.execute(
        select(Classroom).where(Classroom.hod_id.is_not(None)).order_by(Classroom.name)
    ).scalars()
    for classroom in classrooms:
        minutes = taught.get(classroom.id, 0)
        if minutes < policy.hod_min_minutes_per_week:
            report.hod_deficits.append(
                HodDeficit(
                    classroom_id=classroom.id,
                    classroom_name=classroom.name,
                    hod_id=classroom.hod_id,
                    taught_minutes=minutes,
                    required_minutes=policy.hod_min_minutes_per_week,
                )
            )

    summary = {
        "week_start": week_start.isoformat(),
        "overloaded": [item.teacher_id for item in report.overloaded],
        "hod_deficits": [item.classroom_id for item in report.hod_deficits],
    }
    if report.overloaded:
        notify_admins(
            db,
            title="Workload cap exceeded",
            message=", ".join(
                f"{item.employee_code} ({item.assigned_minutes}/{item.max_weekly_minutes} min)"
                for item in report.overloaded
            ),
            notification_type=NotificationType.workload_violation,
            details=summary,
        )
    if report.hod_deficits:
        notify_admins(
            db,
            title="Head of department teaching below minimum",
            message=", ".join(
                f"{item.classroom_name} ({item.taught_minutes}/{item.required_minutes} min)"
                for item in report.hod_deficits
            ),
            notification_type=NotificationType.hod_deficit,
            details=summary,
        )
        for item in report.hod_deficits:
            notify_teachers(
                db,
                teacher_ids=[item.hod_id],
                title="Below minimum teaching time",
                message=(
                    f"You teach {item.taught_minutes} minutes a week in {item.classroom_name}; "
                    f"the minimum is {item.required_minutes}."
                ),
                notification_type=NotificationType.hod_deficit,
                details={"classroom_id": item.classroom_id, "week_start": week_start.isoformat()},
            )

    log_activity(
        db,
        actor=actor,
        action="workload.enforced",
        entity_type="workload",
        entity_id=week_start.isoformat(),
        details=summary,
    )
    logger.info(
        "Workload enforcement for week %s: %d teacher(s), %d overloaded, %d HOD deficit(s)",
        week_start,
        len(teachers),
        len(report.overloaded),
        len(report.hod_deficits),
    )
    return report
