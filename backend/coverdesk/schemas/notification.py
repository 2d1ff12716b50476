from datetime import datetime

from pydantic import BaseModel

from coverdesk.models.notification import NotificationAudience, NotificationType


class NotificationOut(BaseModel):
    id: str
    audience: NotificationAudience
    recipient_id: str | None
    title: str
    message: str
    notification_type: NotificationType
    details: dict
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
