from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db, get_policy
from coverdesk.schemas.conflict import ConflictCheckRequest, ConflictOut, ConflictReport
from coverdesk.schemas.scheduling import SchedulingPolicy
from coverdesk.services import timetable_service
from coverdesk.services.conflict_service import detect

router = APIRouter()


@router.post("/conflicts/check", response_model=ConflictReport)
def check_conflicts(
    payload: ConflictCheckRequest,
    policy: SchedulingPolicy = Depends(get_policy),
) -> ConflictReport:
    min_travel = payload.min_travel_minutes
    if min_travel is None:
        min_travel = policy.min_travel_minutes
    return detect(
        payload.slots,
        min_travel_minutes=min_travel,
        include_resolutions=payload.include_resolutions,
    )


@router.post("/timetables/{timetable_id}/conflicts/detect", response_model=ConflictReport)
def detect_timetable_conflicts(
    timetable_id: str,
    db: Session = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_policy),
) -> ConflictReport:
    report = timetable_service.detect_and_store_conflicts(db, timetable_id, policy)
    db.commit()
    return report


@router.get("/timetables/{timetable_id}/conflicts", response_model=list[ConflictOut])
def list_timetable_conflicts(timetable_id: str, db: Session = Depends(get_db)) -> list[ConflictOut]:
    return timetable_service.stored_conflicts(db, timetable_id)
