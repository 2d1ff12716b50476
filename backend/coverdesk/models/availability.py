import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from coverdesk.db.base import Base
from coverdesk.schemas.scheduling import AvailabilityType


class AvailabilitySource(str, Enum):
    self_reported = "self"
    admin = "admin"
    auto = "auto"


class TeacherAvailability(Base):
    __tablename__ = "teacher_availability"
    __table_args__ = (Index("ix_teacher_availability_teacher_date", "teacher_id", "date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    on_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    # Both unset means the whole day.
    start_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[AvailabilityType] = mapped_column(
        SAEnum(AvailabilityType, name="availability_type"),
        nullable=False,
        default=AvailabilityType.available,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[AvailabilitySource] = mapped_column(
        SAEnum(AvailabilitySource, name="availability_source", values_callable=lambda items: [i.value for i in items]),
        nullable=False,
        default=AvailabilitySource.self_reported,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
