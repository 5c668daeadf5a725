"""
Notification service - in-app notifications

Notifications are fire-and-forget: callers outside a request transaction
use notify_safely, which commits each notification on its own and logs
instead of raising.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hrapprovals.models.employee import Employee, ADMIN_ROLES
from hrapprovals.models.notification import Notification, NotificationPriority, NotificationType
from hrapprovals.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    recipient_id: int,
    notification_type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Notification:
    """Create and commit a single notification."""
    notification = Notification(
        recipient_id=recipient_id,
        notification_type=notification_type,
        title=title,
        message=message,
        priority=priority,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        meta_json=sanitize_for_json(meta) if meta is not None else None,
        is_read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def notify_safely(db: Session, recipient_id: int, **kwargs) -> Optional[Notification]:
    """
    create_notification that never raises; failures are logged and rolled back.
    """
    try:
        return create_notification(db, recipient_id, **kwargs)
    except Exception:
        logger.exception(
            "Notification failed: recipient_id=%s type=%s", recipient_id, kwargs.get("notification_type")
        )
        db.rollback()
        return None


def get_admin_ids(db: Session) -> List[int]:
    """Active ADMIN and SUPER_ADMIN employee ids."""
    rows = db.query(Employee.id).filter(
        Employee.role.in_([r.value for r in ADMIN_ROLES]),
        Employee.active == True  # noqa: E712
    ).order_by(Employee.id).all()
    return [row[0] for row in rows]


def notify_admins(db: Session, exclude_ids: Optional[List[int]] = None, **kwargs) -> int:
    """Notify every active admin; returns how many notifications were created."""
    exclude = set(exclude_ids or [])
    sent = 0
    for admin_id in get_admin_ids(db):
        if admin_id in exclude:
            continue
        if notify_safely(db, admin_id, **kwargs) is not None:
            sent += 1
    return sent


def list_notifications(db: Session, recipient_id: int, unread_only: bool = False) -> List[Notification]:
    query = db.query(Notification).filter(Notification.recipient_id == recipient_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
