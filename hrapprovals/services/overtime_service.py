"""
Overtime service - overtime claims and their approval

Overtime approval follows the same reporting-line authority as leave.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrapprovals.core.errors import ConflictError, NotFoundError, ValidationError
from hrapprovals.models.notification import NotificationPriority, NotificationType
from hrapprovals.models.overtime import Overtime, OvertimeStatus
from hrapprovals.services.audit_service import log_audit
from hrapprovals.services.hierarchy_service import ApprovalDomain, get_active_employee, require_can_approve
from hrapprovals.services.side_effect_dispatcher import dispatch_notification
from hrapprovals.services.transitions import transition_or_raise
from hrapprovals.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

LABEL = "Overtime entry"

# Overtime follows leave authority
OVERTIME_DOMAIN = ApprovalDomain.LEAVE


def compute_overtime_hours(scheduled_hours, worked_hours) -> Decimal:
    """max(0, worked - scheduled)."""
    return max(Decimal("0"), Decimal(str(worked_hours)) - Decimal(str(scheduled_hours)))


def get_overtime(db: Session, overtime_id: int) -> Overtime:
    overtime = db.query(Overtime).filter(Overtime.id == overtime_id).first()
    if not overtime:
        raise NotFoundError(f"Overtime entry with id {overtime_id} not found")
    return overtime


def create_overtime(
    db: Session,
    employee_id: int,
    work_date: date,
    scheduled_hours,
    worked_hours,
    reason: Optional[str] = None,
) -> Overtime:
    """
    Record an overtime claim; one per employee and date.

    Raises:
        ValidationError: negative hours or no hours beyond the schedule
        ConflictError: an entry for that date already exists
    """
    if get_active_employee(db, employee_id) is None:
        raise NotFoundError(f"Employee with id {employee_id} not found")
    scheduled = Decimal(str(scheduled_hours))
    worked = Decimal(str(worked_hours))
    if scheduled < 0 or worked < 0:
        raise ValidationError("Hours cannot be negative")
    overtime_hours = compute_overtime_hours(scheduled, worked)
    if overtime_hours <= 0:
        raise ValidationError("Worked hours must exceed scheduled hours")

    existing = db.query(Overtime.id).filter(
        Overtime.employee_id == employee_id, Overtime.work_date == work_date
    ).first()
    if existing is not None:
        raise ConflictError("Overtime entry already exists for this date", code="duplicate_overtime")

    overtime = Overtime(
        employee_id=employee_id,
        work_date=work_date,
        scheduled_hours=scheduled,
        worked_hours=worked,
        overtime_hours=overtime_hours,
        reason=reason,
        status=OvertimeStatus.PENDING,
    )
    db.add(overtime)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Overtime entry already exists for this date", code="duplicate_overtime")

    log_audit(
        db=db, actor_id=employee_id, action="OVERTIME_CREATE", entity_type="overtime", entity_id=overtime.id,
        meta={"work_date": work_date, "overtime_hours": overtime_hours},
    )
    db.refresh(overtime)
    return overtime


def approve_overtime(db: Session, overtime_id: int, actor_id: int) -> Overtime:
    overtime = get_overtime(db, overtime_id)
    require_can_approve(db, actor_id, overtime.employee_id, OVERTIME_DOMAIN)
    transition_or_raise(
        db, overtime,
        expected=OvertimeStatus.PENDING,
        new_status=OvertimeStatus.APPROVED,
        action="approve",
        values={"approved_by_id": actor_id, "approved_at": now_utc()},
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="OVERTIME_APPROVE", entity_type="overtime", entity_id=overtime.id,
        meta={"employee_id": overtime.employee_id, "overtime_hours": overtime.overtime_hours},
    )
    db.refresh(overtime)
    dispatch_notification(
        db, f"overtime_approved:{overtime.id}", overtime.employee_id,
        notification_type=NotificationType.OVERTIME_APPROVED,
        title="Overtime approved",
        message=f"Your {overtime.overtime_hours} overtime hour(s) on {overtime.work_date.isoformat()} were approved.",
        priority=NotificationPriority.MEDIUM,
        related_entity_type="overtime",
        related_entity_id=overtime.id,
    )
    return overtime


def reject_overtime(db: Session, overtime_id: int, actor_id: int, reason: Optional[str] = None) -> Overtime:
    overtime = get_overtime(db, overtime_id)
    require_can_approve(db, actor_id, overtime.employee_id, OVERTIME_DOMAIN)
    reason = (reason or "").strip() or None
    transition_or_raise(
        db, overtime,
        expected=OvertimeStatus.PENDING,
        new_status=OvertimeStatus.REJECTED,
        action="reject",
        values={"rejected_by_id": actor_id, "rejected_at": now_utc(), "rejection_reason": reason},
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="OVERTIME_REJECT", entity_type="overtime", entity_id=overtime.id,
        meta={"employee_id": overtime.employee_id, "reason": reason},
    )
    db.refresh(overtime)
    dispatch_notification(
        db, f"overtime_rejected:{overtime.id}", overtime.employee_id,
        notification_type=NotificationType.OVERTIME_REJECTED,
        title="Overtime rejected",
        message=f"Your overtime on {overtime.work_date.isoformat()} was rejected." + (f" Reason: {reason}" if reason else ""),
        priority=NotificationPriority.HIGH,
        related_entity_type="overtime",
        related_entity_id=overtime.id,
    )
    return overtime
