"""
Overlap detection for leave ranges

Ranges are closed intervals: [s, e] and [start, end] conflict when
s <= end and e >= start, so leave ending on a day conflicts with leave
starting that same day. Only pending and approved entries block.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from hrapprovals.core.errors import ConflictError, ValidationError
from hrapprovals.models.leave import (
    LeaveRecord,
    LeaveRequest,
    LeaveRequestStatus,
    BLOCKING_RECORD_STATUSES,
)

logger = logging.getLogger(__name__)

BLOCKING_REQUEST_STATUSES = (LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a <= end_b and end_a >= start_b


def find_conflicts(db: Session, employee_id: int, start: date, end: date) -> List[LeaveRecord]:
    """
    Pending or approved ledger records of employee_id intersecting [start, end].
    """
    if end < start:
        raise ValidationError("End date must be on or after start date")
    return db.query(LeaveRecord).filter(
        LeaveRecord.employee_id == employee_id,
        LeaveRecord.status.in_(BLOCKING_RECORD_STATUSES),
        LeaveRecord.start_date <= end,
        LeaveRecord.end_date >= start,
    ).order_by(LeaveRecord.start_date).all()


def find_conflicting_requests(
    db: Session,
    employee_id: int,
    start: date,
    end: date,
    exclude_request_id: Optional[int] = None,
) -> List[LeaveRequest]:
    """
    Pending or approved leave requests of employee_id intersecting [start, end].
    """
    query = db.query(LeaveRequest).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status.in_(BLOCKING_REQUEST_STATUSES),
        LeaveRequest.start_date <= end,
        LeaveRequest.end_date >= start,
    )
    if exclude_request_id is not None:
        query = query.filter(LeaveRequest.id != exclude_request_id)
    return query.order_by(LeaveRequest.start_date).all()


def ensure_no_overlap(
    db: Session,
    employee_id: int,
    start: date,
    end: date,
    exclude_request_id: Optional[int] = None,
) -> None:
    """
    Raise ConflictError if the range intersects existing pending/approved leave.

    Checks both the ledger and in-flight requests, since a pending request
    has no ledger record yet.
    """
    records = find_conflicts(db, employee_id, start, end)
    requests = find_conflicting_requests(db, employee_id, start, end, exclude_request_id)
    # A request's own record must not count against it
    if exclude_request_id is not None:
        records = [r for r in records if r.leave_request_id != exclude_request_id]
    if records or requests:
        logger.info(
            "leave overlap: employee_id=%s range=%s..%s records=%s requests=%s",
            employee_id, start, end, [r.id for r in records], [r.id for r in requests],
        )
        raise ConflictError("You already have leave booked that overlaps these dates", code="leave_overlap")
