import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from coverdesk.db.base import Base
from coverdesk.schemas.conflict import ConflictSeverity, ConflictType


class TimetableConflict(Base):
    __tablename__ = "conflicts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False, index=True)
    conflict_type: Mapped[ConflictType] = mapped_column(SAEnum(ConflictType, name="conflict_type"), nullable=False)
    severity: Mapped[ConflictSeverity] = mapped_column(SAEnum(ConflictSeverity, name="conflict_severity"), nullable=False)
    slot1_id: Mapped[str] = mapped_column(String(36), nullable=False)
    slot2_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
