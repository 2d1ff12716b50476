import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from coverdesk.db.base import Base


class NotificationType(str, Enum):
    absence_reported = "absence_reported"
    substitution_suggested = "substitution_suggested"
    substitution_applied = "substitution_applied"
    workload_violation = "workload_violation"
    hod_deficit = "hod_deficit"
    conflict_detected = "conflict_detected"


class NotificationAudience(str, Enum):
    admin = "admin"
    teacher = "teacher"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    audience: Mapped[NotificationAudience] = mapped_column(
        SAEnum(NotificationAudience, name="notification_audience"),
        nullable=False,
        index=True,
    )
    # Teacher id for teacher notifications; unset for the admin feed.
    recipient_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        SAEnum(NotificationType, name="notification_type"),
        nullable=False,
    )
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
