import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from coverdesk.db.base import Base
from coverdesk.schemas.scheduling import Priority


class SubstitutionStatus(str, Enum):
    open = "open"
    suggested = "suggested"
    applied = "applied"
    rejected = "rejected"
    cancelled = "cancelled"


class SubstitutionRequest(Base):
    __tablename__ = "substitution_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False, index=True)
    time_slot_id: Mapped[str] = mapped_column(ForeignKey("time_slots.id"), nullable=False, index=True)
    absence_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    original_teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teachers.id"), nullable=True, index=True)
    suggested_teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teachers.id"), nullable=True, index=True)
    assigned_teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teachers.id"), nullable=True)
    status: Mapped[SubstitutionStatus] = mapped_column(
        SAEnum(SubstitutionStatus, name="substitution_status"),
        nullable=False,
        default=SubstitutionStatus.open,
        index=True,
    )
    priority: Mapped[Priority] = mapped_column(
        SAEnum(Priority, name="substitution_priority"),
        nullable=False,
        default=Priority.normal,
    )
    suggestion_payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    applied_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
