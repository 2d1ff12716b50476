from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coverdesk.api.deps import get_db
from coverdesk.core.exceptions import ResourceNotFoundError
from coverdesk.models.notification import Notification, NotificationAudience
from coverdesk.schemas.notification import NotificationOut
from coverdesk.services.notifications import list_notifications

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def get_notifications(
    audience: NotificationAudience | None = Query(default=None),
    recipient_id: str | None = Query(default=None),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    return list_notifications(
        db,
        audience=audience,
        recipient_id=recipient_id,
        unread_only=unread_only,
        limit=limit,
    )


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(notification_id: str, db: Session = Depends(get_db)) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise ResourceNotFoundError("Notification", notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
