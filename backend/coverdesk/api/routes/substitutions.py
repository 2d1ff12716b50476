from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db, get_policy
from coverdesk.core.config import get_settings
from coverdesk.core.exceptions import ResourceNotFoundError, SchedulingConflictError
from coverdesk.models.substitution_request import SubstitutionStatus
from coverdesk.schemas.scheduling import SchedulingPolicy
from coverdesk.schemas.substitution import (
    AbsenceOut,
    AbsenceReport,
    ApplySubstitution,
    CancelSubstitution,
    CandidateOut,
    RejectSubstitution,
    SubstitutionRequestOut,
)
from coverdesk.services import absence
from coverdesk.services.ranking import find_eligible
from coverdesk.services.store import SchedulingStore

router = APIRouter()

settings = get_settings()


@router.get("/slots/{slot_id}/candidates", response_model=list[CandidateOut])
def list_candidates(
    slot_id: str,
    on_date: date = Query(alias="date"),
    limit: int = Query(default=settings.candidate_limit, ge=1, le=50),
    db: Session = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_policy),
) -> list[CandidateOut]:
    store = SchedulingStore(db)
    slot = store.get_slot(slot_id)
    if slot is None:
        raise ResourceNotFoundError("TimeSlot", slot_id)
    try:
        candidates = find_eligible(store, slot, on_date, limit=limit, policy=policy)
    except ValueError as exc:
        raise SchedulingConflictError(str(exc), details={"slot_id": slot_id, "date": on_date.isoformat()}) from exc
    # Missing workload rows may have been filled in while ranking.
    db.commit()
    return [CandidateOut(**item.model_dump()) for item in candidates]


@router.post("/absences", response_model=AbsenceOut, status_code=status.HTTP_201_CREATED)
def report_absence(
    payload: AbsenceReport,
    db: Session = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_policy),
) -> AbsenceOut:
    outcome = absence.report_absence(
        db,
        teacher_id=payload.teacher_id,
        on_date=payload.on_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        reason=payload.reason,
        source=payload.source,
        actor=payload.reported_by,
        policy=policy,
        candidate_limit=settings.candidate_limit,
    )
    db.commit()
    for request in outcome.requests:
        db.refresh(request)
    return AbsenceOut(
        availability_id=outcome.availability.id,
        teacher_id=payload.teacher_id,
        on_date=payload.on_date,
        requests=[SubstitutionRequestOut.model_validate(item) for item in outcome.requests],
    )


@router.get("/substitutions", response_model=list[SubstitutionRequestOut])
def list_substitutions(
    request_status: SubstitutionStatus | None = Query(default=None, alias="status"),
    timetable_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[SubstitutionRequestOut]:
    return absence.list_requests(db, status=request_status, timetable_id=timetable_id)


@router.post("/substitutions/{request_id}/apply", response_model=SubstitutionRequestOut)
def apply_substitution(
    request_id: str,
    payload: ApplySubstitution,
    db: Session = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_policy),
) -> SubstitutionRequestOut:
    request = absence.apply_substitution(
        db,
        request_id,
        teacher_id=payload.teacher_id,
        actor=payload.applied_by,
        policy=policy,
    )
    db.commit()
    db.refresh(request)
    return request


@router.post("/substitutions/{request_id}/reject", response_model=SubstitutionRequestOut)
def reject_substitution(
    request_id: str,
    payload: RejectSubstitution,
    db: Session = Depends(get_db),
) -> SubstitutionRequestOut:
    request = absence.reject_substitution(db, request_id, reason=payload.reason, actor=payload.rejected_by)
    db.commit()
    db.refresh(request)
    return request


@router.post("/substitutions/{request_id}/cancel", response_model=SubstitutionRequestOut)
def cancel_substitution(
    request_id: str,
    payload: CancelSubstitution,
    db: Session = Depends(get_db),
) -> SubstitutionRequestOut:
    request = absence.cancel_substitution(db, request_id, actor=payload.cancelled_by)
    db.commit()
    db.refresh(request)
    return request
