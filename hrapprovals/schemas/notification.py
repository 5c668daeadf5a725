"""
Notification schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_serializer
from hrapprovals.utils.datetime_utils import iso_local
from hrapprovals.models.notification import NotificationPriority, NotificationType


class NotificationOut(BaseModel):
    id: int
    notification_type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: datetime) -> str:
        return iso_local(dt)
