from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db
from coverdesk.models.timetable import Timetable, TimetableSlot
from coverdesk.schemas.scheduling import SlotStatus
from coverdesk.schemas.timetable import SlotCreate, SlotOut, SlotUpdate, TimetableCreate, TimetableOut
from coverdesk.services import timetable_service
from coverdesk.services.intervals import WEEKDAY_ORDER

router = APIRouter()


@router.get("/timetables", response_model=list[TimetableOut])
def list_timetables(db: Session = Depends(get_db)) -> list[TimetableOut]:
    return list(db.execute(select(Timetable).order_by(Timetable.created_at, Timetable.id)).scalars())


@router.post("/timetables", response_model=TimetableOut, status_code=status.HTTP_201_CREATED)
def create_timetable(payload: TimetableCreate, db: Session = Depends(get_db)) -> TimetableOut:
    timetable = Timetable(**payload.model_dump())
    db.add(timetable)
    db.commit()
    db.refresh(timetable)
    return timetable


@router.get("/timetables/{timetable_id}/slots", response_model=list[SlotOut])
def list_slots(
    timetable_id: str,
    slot_status: SlotStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[SlotOut]:
    timetable_service.get_timetable(db, timetable_id)
    query = select(TimetableSlot).where(TimetableSlot.timetable_id == timetable_id)
    if slot_status is not None:
        query = query.where(TimetableSlot.status == slot_status)
    slots = db.execute(query).scalars()
    return sorted(slots, key=lambda item: (WEEKDAY_ORDER.index(item.day), item.start_time, item.id))


@router.post(
    "/timetables/{timetable_id}/slots",
    response_model=SlotOut,
    status_code=status.HTTP_201_CREATED,
)
def create_slot(timetable_id: str, payload: SlotCreate, db: Session = Depends(get_db)) -> SlotOut:
    slot = timetable_service.create_slot(db, timetable_id, payload)
    db.commit()
    db.refresh(slot)
    return slot


@router.put("/slots/{slot_id}", response_model=SlotOut)
def update_slot(slot_id: str, payload: SlotUpdate, db: Session = Depends(get_db)) -> SlotOut:
    slot = timetable_service.update_slot(db, slot_id, payload)
    db.commit()
    db.refresh(slot)
    return slot


@router.post("/slots/{slot_id}/cancel", response_model=SlotOut)
def cancel_slot(slot_id: str, db: Session = Depends(get_db)) -> SlotOut:
    slot = timetable_service.cancel_slot(db, slot_id)
    db.commit()
    db.refresh(slot)
    return slot


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: str, db: Session = Depends(get_db)) -> Response:
    timetable_service.delete_slot(db, slot_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
