"""
Leave request service - lifecycle of leave requests

DRAFT -> PENDING (submit), PENDING -> APPROVED | REJECTED (approver),
APPROVED | REJECTED -> PENDING (admin revert). Drafts are edited or
deleted only by their owner. Every status change goes through a guarded
conditional update, so a request is approved at most once.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from hrapprovals.core.config import settings
from hrapprovals.core.errors import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from hrapprovals.models.employee import ADMIN_ROLES
from hrapprovals.models.leave import (
    LeaveRecord,
    LeaveRecordStatus,
    LeaveRecordType,
    LeaveRequest,
    LeaveRequestStatus,
    LeaveType,
    record_type_for,
)
from hrapprovals.services import balance_service
from hrapprovals.services.audit_service import log_audit
from hrapprovals.services.hierarchy_service import (
    ApprovalDomain,
    can_approve,
    get_active_employee,
    require_can_approve,
    role_of,
)
from hrapprovals.services.overlap_service import ensure_no_overlap
from hrapprovals.services.side_effect_dispatcher import (
    dispatch_leave_approved,
    dispatch_leave_rejected,
    dispatch_leave_submitted,
)
from hrapprovals.services.transitions import transition_or_raise
from hrapprovals.utils.datetime_utils import now_utc, today_local

logger = logging.getLogger(__name__)

LABEL = "Leave request"


def compute_number_of_days(start: date, end: date) -> int:
    """Inclusive calendar days; a single-day leave is 1."""
    return (end - start).days + 1


def validate_leave_fields(start: date, end: date, reason: Optional[str], today: Optional[date] = None) -> str:
    """
    Validate a leave range and reason; returns the stripped reason.

    Raises:
        ValidationError: end before start, start in the past, or reason length out of bounds
    """
    today = today or today_local()
    if end < start:
        raise ValidationError("End date must be on or after start date")
    if start < today:
        raise ValidationError("Cannot request leave for past dates")
    reason = (reason or "").strip()
    if len(reason) < settings.MIN_LEAVE_REASON_LENGTH:
        raise ValidationError(
            f"Reason must be at least {settings.MIN_LEAVE_REASON_LENGTH} characters"
        )
    if len(reason) > settings.MAX_LEAVE_REASON_LENGTH:
        raise ValidationError(
            f"Reason cannot exceed {settings.MAX_LEAVE_REASON_LENGTH} characters"
        )
    return reason


def get_leave_request(db: Session, request_id: int) -> LeaveRequest:
    leave_request = db.query(LeaveRequest).filter(LeaveRequest.id == request_id).first()
    if not leave_request:
        raise NotFoundError(f"Leave request with id {request_id} not found")
    return leave_request


def get_leave_request_for_actor(db: Session, request_id: int, actor_id: int) -> LeaveRequest:
    """Owner, nominated approver, or anyone with approval authority over the owner may view."""
    leave_request = get_leave_request(db, request_id)
    if actor_id in (leave_request.employee_id, leave_request.approver_id):
        return leave_request
    if can_approve(db, actor_id, leave_request.employee_id, ApprovalDomain.LEAVE):
        return leave_request
    raise AuthorizationError("You cannot view this leave request")


def list_leave_requests_for_employee(
    db: Session,
    employee_id: int,
    status: Optional[LeaveRequestStatus] = None,
) -> List[LeaveRequest]:
    query = db.query(LeaveRequest).filter(LeaveRequest.employee_id == employee_id)
    if status is not None:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc()).all()


def _validate_approver(db: Session, subject_id: int, approver_id: Optional[int]) -> None:
    if approver_id is None:
        return
    if approver_id == subject_id:
        raise ValidationError("You cannot nominate yourself as approver")
    if get_active_employee(db, approver_id) is None:
        raise NotFoundError(f"Approver with id {approver_id} not found")


def submit_leave_request(
    db: Session,
    subject_id: int,
    approver_id: Optional[int],
    leave_type: LeaveType,
    start: date,
    end: date,
    reason: str,
    as_draft: bool = False,
) -> LeaveRequest:
    """
    Create a leave request, PENDING by default or DRAFT when as_draft.

    Pending requests are checked for overlap against pending/approved
    leave and notify the nominated approver.

    Raises:
        ValidationError: bad dates or reason
        NotFoundError: unknown subject or approver
        ConflictError: overlapping leave
    """
    if get_active_employee(db, subject_id) is None:
        raise NotFoundError(f"Employee with id {subject_id} not found")
    reason = validate_leave_fields(start, end, reason)
    _validate_approver(db, subject_id, approver_id)
    if not as_draft:
        ensure_no_overlap(db, subject_id, start, end)

    status = LeaveRequestStatus.DRAFT if as_draft else LeaveRequestStatus.PENDING
    leave_request = LeaveRequest(
        employee_id=subject_id,
        approver_id=approver_id,
        leave_type=LeaveType(leave_type),
        start_date=start,
        end_date=end,
        number_of_days=compute_number_of_days(start, end),
        reason=reason,
        status=status,
        submitted_at=None if as_draft else now_utc(),
    )
    db.add(leave_request)
    db.flush()
    log_audit(
        db=db,
        actor_id=subject_id,
        action="LEAVE_DRAFT_CREATE" if as_draft else "LEAVE_SUBMIT",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta={
            "leave_type": leave_request.leave_type,
            "start_date": start,
            "end_date": end,
            "number_of_days": leave_request.number_of_days,
            "approver_id": approver_id,
        },
    )
    db.refresh(leave_request)
    logger.info(
        "leave request created: leave_request_id=%s employee_id=%s status=%s days=%s",
        leave_request.id, subject_id, status.value, leave_request.number_of_days,
    )

    if not as_draft:
        dispatch_leave_submitted(db, leave_request)
    return leave_request


def _require_owner(leave_request: LeaveRequest, actor_id: int) -> None:
    if leave_request.employee_id != actor_id:
        raise AuthorizationError("Only the requester can change this leave request")


def submit_leave_draft(db: Session, request_id: int, actor_id: int) -> LeaveRequest:
    """DRAFT -> PENDING by the owner, re-validating dates, reason and overlap."""
    leave_request = get_leave_request(db, request_id)
    _require_owner(leave_request, actor_id)
    if leave_request.status != LeaveRequestStatus.DRAFT:
        raise StateError(LABEL, leave_request.status.value)
    validate_leave_fields(leave_request.start_date, leave_request.end_date, leave_request.reason)
    ensure_no_overlap(
        db, leave_request.employee_id, leave_request.start_date, leave_request.end_date,
        exclude_request_id=leave_request.id,
    )

    transition_or_raise(
        db, leave_request,
        expected=LeaveRequestStatus.DRAFT,
        new_status=LeaveRequestStatus.PENDING,
        action="submit",
        values={"submitted_at": now_utc()},
        label=LABEL,
    )
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_SUBMIT",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta={"from_draft": True},
    )
    db.refresh(leave_request)
    dispatch_leave_submitted(db, leave_request)
    return leave_request


def update_leave_draft(
    db: Session,
    request_id: int,
    actor_id: int,
    leave_type: Optional[LeaveType] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    reason: Optional[str] = None,
    approver_id: Optional[int] = None,
) -> LeaveRequest:
    """
    Edit a draft; only the owner, only while it is still DRAFT.
    """
    leave_request = get_leave_request(db, request_id)
    _require_owner(leave_request, actor_id)
    if leave_request.status != LeaveRequestStatus.DRAFT:
        raise StateError(LABEL, leave_request.status.value)

    new_start = start or leave_request.start_date
    new_end = end or leave_request.end_date
    new_reason = validate_leave_fields(new_start, new_end, reason if reason is not None else leave_request.reason)
    if approver_id is not None:
        _validate_approver(db, leave_request.employee_id, approver_id)

    values = {
        "start_date": new_start,
        "end_date": new_end,
        "number_of_days": compute_number_of_days(new_start, new_end),
        "reason": new_reason,
        "leave_type": LeaveType(leave_type) if leave_type is not None else leave_request.leave_type,
        "approver_id": approver_id if approver_id is not None else leave_request.approver_id,
    }
    # Same-status guarded write: the edit lands only if the row is still a draft
    transition_or_raise(
        db, leave_request,
        expected=LeaveRequestStatus.DRAFT,
        new_status=LeaveRequestStatus.DRAFT,
        action="edit_draft",
        values=values,
        label=LABEL,
    )
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_DRAFT_UPDATE",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta=values,
    )
    db.refresh(leave_request)
    return leave_request


def delete_leave_draft(db: Session, request_id: int, actor_id: int) -> None:
    """Delete a draft; only the owner, only while it is still DRAFT."""
    leave_request = get_leave_request(db, request_id)
    _require_owner(leave_request, actor_id)

    result = db.execute(
        delete(LeaveRequest)
        .where(LeaveRequest.id == request_id, LeaveRequest.status == LeaveRequestStatus.DRAFT)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        current = db.query(LeaveRequest.status).filter(LeaveRequest.id == request_id).scalar()
        raise StateError(LABEL, current.value if current is not None else None)
    db.expunge(leave_request)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_DRAFT_DELETE",
        entity_type="leave_requests",
        entity_id=request_id,
    )
    logger.info("leave draft deleted: leave_request_id=%s", request_id)


def approve_leave_request(
    db: Session,
    request_id: int,
    actor_id: int,
    comment: Optional[str] = None,
) -> LeaveRequest:
    """
    PENDING -> APPROVED.

    The status change and the resulting LeaveRecord commit together; the
    side-effect fan-out runs afterwards and cannot fail the approval.

    Raises:
        NotFoundError: unknown request
        AuthorizationError: actor lacks leave authority over the requester
        StateError: request is not PENDING (already approved, rejected, or a draft)
    """
    leave_request = get_leave_request(db, request_id)
    require_can_approve(db, actor_id, leave_request.employee_id, ApprovalDomain.LEAVE)

    transition_or_raise(
        db, leave_request,
        expected=LeaveRequestStatus.PENDING,
        new_status=LeaveRequestStatus.APPROVED,
        action="approve",
        values={
            "approved_by_id": actor_id,
            "approved_at": now_utc(),
            "admin_comment": comment,
        },
        label=LABEL,
    )

    record = LeaveRecord(
        employee_id=leave_request.employee_id,
        record_type=record_type_for(leave_request.leave_type),
        status=LeaveRecordStatus.APPROVED,
        start_date=leave_request.start_date,
        end_date=leave_request.end_date,
        days=Decimal(leave_request.number_of_days),
        reason=leave_request.reason,
        leave_request_id=leave_request.id,
        created_by_id=actor_id,
    )
    db.add(record)
    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_APPROVE",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta={
            "employee_id": leave_request.employee_id,
            "leave_type": leave_request.leave_type,
            "leave_record_id": record.id,
            "record_type": record.record_type,
            "days": record.days,
            "comment": comment,
        },
    )
    db.refresh(leave_request)

    dispatch_leave_approved(db, leave_request)
    db.refresh(leave_request)
    return leave_request


def reject_leave_request(db: Session, request_id: int, actor_id: int, reason: str) -> LeaveRequest:
    """
    PENDING -> REJECTED; the reason is required.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    leave_request = get_leave_request(db, request_id)
    require_can_approve(db, actor_id, leave_request.employee_id, ApprovalDomain.LEAVE)

    transition_or_raise(
        db, leave_request,
        expected=LeaveRequestStatus.PENDING,
        new_status=LeaveRequestStatus.REJECTED,
        action="reject",
        values={
            "rejected_by_id": actor_id,
            "rejected_at": now_utc(),
            "rejection_reason": reason,
        },
        label=LABEL,
    )
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_REJECT",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta={
            "employee_id": leave_request.employee_id,
            "leave_type": leave_request.leave_type,
            "reason": reason,
        },
    )
    db.refresh(leave_request)

    dispatch_leave_rejected(db, leave_request)
    db.refresh(leave_request)
    return leave_request


def revert_leave_request(db: Session, request_id: int, actor_id: int) -> LeaveRequest:
    """
    Admin-only: APPROVED | REJECTED -> PENDING.

    Clears approval and rejection fields, removes the ledger record an
    approval produced, and recalculates the affected balance.
    """
    actor = get_active_employee(db, actor_id)
    if role_of(actor) not in ADMIN_ROLES:
        raise AuthorizationError("Only admins can revert a leave decision")
    leave_request = get_leave_request(db, request_id)

    transition_or_raise(
        db, leave_request,
        expected=(LeaveRequestStatus.APPROVED, LeaveRequestStatus.REJECTED),
        new_status=LeaveRequestStatus.PENDING,
        action="revert",
        values={
            "approved_by_id": None,
            "approved_at": None,
            "admin_comment": None,
            "rejected_by_id": None,
            "rejected_at": None,
            "rejection_reason": None,
        },
        label=LABEL,
    )

    record = db.query(LeaveRecord).filter(LeaveRecord.leave_request_id == leave_request.id).first()
    removed_annual = False
    if record is not None:
        removed_annual = LeaveRecordType(record.record_type) == LeaveRecordType.ANNUAL
        db.delete(record)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_REVERT",
        entity_type="leave_requests",
        entity_id=leave_request.id,
        meta={"employee_id": leave_request.employee_id, "removed_leave_record": record is not None},
    )
    db.refresh(leave_request)

    if removed_annual:
        balance_service.recalculate_for_range(
            db, leave_request.employee_id, leave_request.start_date, leave_request.end_date
        )
    return leave_request

