"""
Shift service - reactions of the rota to approved leave
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from hrapprovals.models.leave import LeaveRecord, LeaveRecordStatus
from hrapprovals.models.shift import (
    ShiftAssignment,
    ShiftStatus,
    CANCELLABLE_SHIFT_STATUSES,
    INACTIVE_SHIFT_STATUSES,
)

logger = logging.getLogger(__name__)


def append_note(existing: Optional[str], note: str) -> str:
    if existing:
        return f"{existing}\n{note}"
    return note


def cancel_shifts_for_leave(
    db: Session,
    employee_id: int,
    start: date,
    end: date,
    note: str,
) -> List[ShiftAssignment]:
    """
    Cancel the employee's scheduled or pending shifts dated within [start, end].

    Returns:
        The shifts that were cancelled
    """
    shifts = db.query(ShiftAssignment).filter(
        ShiftAssignment.employee_id == employee_id,
        ShiftAssignment.shift_date >= start,
        ShiftAssignment.shift_date <= end,
        ShiftAssignment.status.in_(CANCELLABLE_SHIFT_STATUSES),
    ).order_by(ShiftAssignment.shift_date).all()

    for shift in shifts:
        shift.status = ShiftStatus.CANCELLED
        shift.notes = append_note(shift.notes, note)
    db.commit()

    if shifts:
        logger.info(
            "Cancelled shifts for leave: employee_id=%s range=%s..%s shift_ids=%s",
            employee_id, start, end, [s.id for s in shifts],
        )
    return shifts


def can_schedule_employee_for_shift(db: Session, employee_id: int, shift_date: date) -> dict:
    """
    Whether the rota may place employee_id on shift_date.

    Approved leave covering the date, or an existing active shift that day,
    blocks scheduling.

    Returns:
        {"can_schedule": bool, "reason": Optional[str]}
    """
    leave = db.query(LeaveRecord).filter(
        LeaveRecord.employee_id == employee_id,
        LeaveRecord.status == LeaveRecordStatus.APPROVED,
        LeaveRecord.start_date <= shift_date,
        LeaveRecord.end_date >= shift_date,
    ).first()
    if leave is not None:
        return {"can_schedule": False, "reason": "Employee is on approved leave", "leave_record_id": leave.id}

    existing = db.query(ShiftAssignment).filter(
        ShiftAssignment.employee_id == employee_id,
        ShiftAssignment.shift_date == shift_date,
        ShiftAssignment.status.notin_(INACTIVE_SHIFT_STATUSES),
    ).first()
    if existing is not None:
        return {"can_schedule": False, "reason": "Employee already has a shift on this date", "shift_id": existing.id}

    return {"can_schedule": True, "reason": None}
