"""
In-app notification model
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.sql import text
import enum
from hrapprovals.db.base import Base


class NotificationPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class NotificationType(str, enum.Enum):
    LEAVE_SUBMITTED = "LEAVE_SUBMITTED"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    TEAM_MEMBER_ON_LEAVE = "TEAM_MEMBER_ON_LEAVE"
    EXPENSE_APPROVED = "EXPENSE_APPROVED"
    EXPENSE_DECLINED = "EXPENSE_DECLINED"
    EXPENSE_PAID = "EXPENSE_PAID"
    OVERTIME_APPROVED = "OVERTIME_APPROVED"
    OVERTIME_REJECTED = "OVERTIME_REJECTED"
    ABSENCE_DETECTED = "ABSENCE_DETECTED"
    LATE_ARRIVAL = "LATE_ARRIVAL"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    notification_type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(SQLEnum(NotificationPriority), nullable=False, default=NotificationPriority.MEDIUM)
    related_entity_type = Column(String, nullable=True)
    related_entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
