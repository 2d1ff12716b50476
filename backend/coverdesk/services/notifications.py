from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from coverdesk.models.notification import Notification, NotificationAudience, NotificationType
from coverdesk.models.teacher import Teacher
from coverdesk.schemas.scheduling import TeacherStatus

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    audience: NotificationAudience,
    title: str,
    message: str,
    notification_type: NotificationType,
    recipient_id: str | None = None,
    details: dict | None = None,
) -> Notification:
    record = Notification(
        audience=audience,
        recipient_id=recipient_id,
        title=title,
        message=message,
        notification_type=notification_type,
        details=details or {},
    )
    db.add(record)
    db.flush()
    logger.info("Notification %s queued for %s %s", notification_type.value, audience.value, recipient_id or "")
    return record


def notify_admins(
    db: Session,
    *,
    title: str,
    message: str,
    notification_type: NotificationType,
    details: dict | None = None,
) -> Notification:
    return create_notification(
        db,
        audience=NotificationAudience.admin,
        title=title,
        message=message,
        notification_type=notification_type,
        details=details,
    )


def notify_teachers(
    db: Session,
    *,
    teacher_ids: list[str] | set[str] | tuple[str, ...],
    title: str,
    message: str,
    notification_type: NotificationType,
    details: dict | None = None,
) -> list[Notification]:
    requested_ids = [item for item in dict.fromkeys(teacher_ids) if item]
    if not requested_ids:
        return []

    recipients = list(
        db.execute(
            select(Teacher.id).where(
                Teacher.id.in_(requested_ids),
                Teacher.status == TeacherStatus.active,
            )
        ).scalars()
    )
    return [
        create_notification(
            db,
            audience=NotificationAudience.teacher,
            recipient_id=teacher_id,
            title=title,
            message=message,
            notification_type=notification_type,
            details=details,
        )
        for teacher_id in sorted(recipients)
    ]


def list_notifications(
    db: Session,
    *,
    audience: NotificationAudience | None = None,
    recipient_id: str | None = None,
    unread_only: bool = False,
    limit: int = 100,
) -> list[Notification]:
    query = select(Notification).order_by(Notification.created_at.desc(), Notification.id)
    if audience is not None:
        query = query.where(Notification.audience == audience)
    if recipient_id is not None:
        query = query.where(Notification.recipient_id == recipient_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    return list(db.execute(query.limit(limit)).scalars())
