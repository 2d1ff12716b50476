from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db, get_policy
from coverdesk.core.exceptions import ResourceNotFoundError
from coverdesk.schemas.scheduling import SchedulingPolicy
from coverdesk.schemas.workload import EnforcementReport, WorkloadOut, WorkloadRecomputeRequest
from coverdesk.services.enforcement import enforce_workload
from coverdesk.services.intervals import week_start_for
from coverdesk.services.store import SchedulingStore
from coverdesk.services.workload import WorkloadTracker, workload_status

router = APIRouter()


def _workload_rows(store: SchedulingStore, week_start: date, teacher_ids: list[str] | None = None) -> list[WorkloadOut]:
    tracker = WorkloadTracker(store)
    teachers = store.list_teachers(active_only=teacher_ids is None)
    if teacher_ids is not None:
        wanted = set(teacher_ids)
        missing = sorted(wanted - {item.id for item in teachers})
        if missing:
            raise ResourceNotFoundError("Teacher", missing[0])
        teachers = [item for item in teachers if item.id in wanted]

    rows: list[WorkloadOut] = []
    for teacher in teachers:
        assigned = tracker.assigned_minutes(teacher.id, week_start)
        rows.append(
            WorkloadOut(
                teacher_id=teacher.id,
                employee_code=teacher.employee_code,
                full_name=teacher.full_name,
                week_start=week_start,
                assigned_minutes=assigned,
                max_weekly_minutes=teacher.max_weekly_minutes,
                min_weekly_minutes=teacher.min_weekly_minutes,
                remaining_minutes=teacher.max_weekly_minutes - assigned,
                status=workload_status(assigned, teacher.max_weekly_minutes, teacher.min_weekly_minutes),
            )
        )
    return rows


@router.get("/workload", response_model=list[WorkloadOut])
def get_workload(
    week_start: date = Query(...),
    db: Session = Depends(get_db),
) -> list[WorkloadOut]:
    rows = _workload_rows(SchedulingStore(db), week_start_for(week_start))
    db.commit()
    return rows


@router.post("/workload/recompute", response_model=list[WorkloadOut])
def recompute_workload(payload: WorkloadRecomputeRequest, db: Session = Depends(get_db)) -> list[WorkloadOut]:
    store = SchedulingStore(db)
    tracker = WorkloadTracker(store)
    teacher_ids = payload.teacher_ids
    for teacher_id in teacher_ids or []:
        if store.get_teacher(teacher_id) is None:
            raise ResourceNotFoundError("Teacher", teacher_id)
    targets = teacher_ids if teacher_ids is not None else [item.id for item in store.list_teachers(active_only=True)]
    tracker.recompute_many(targets, payload.week_start)
    rows = _workload_rows(store, payload.week_start, teacher_ids)
    db.commit()
    return rows


@router.post("/workload/enforce", response_model=EnforcementReport)
def run_enforcement(
    week_start: date = Query(...),
    db: Session = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_policy),
) -> EnforcementReport:
    report = enforce_workload(db, week_start, policy)
    db.commit()
    return report
