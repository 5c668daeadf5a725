"""
Leave request endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.models.employee import Employee
from hrapprovals.models.leave import LeaveRequestStatus
from hrapprovals.schemas.leave import (
    LeaveRequestCreate,
    LeaveRequestUpdate,
    LeaveRequestOut,
    LeaveRequestListResponse,
    ApproveActionRequest,
    RejectActionRequest,
)
from hrapprovals.services import leave_request_service as leaves

router = APIRouter()


@router.post("", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
async def create_leave_request_endpoint(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """
    Create a leave request for the current user.

    Submitted (PENDING) unless as_draft is set. Validations:
    - end_date on or after start_date, start_date not in the past
    - reason between 10 and 500 characters
    - no overlap with pending/approved leave (409)
    """
    return leaves.submit_leave_request(
        db=db,
        subject_id=current_user.id,
        approver_id=payload.approver_id,
        leave_type=payload.leave_type,
        start=payload.start_date,
        end=payload.end_date,
        reason=payload.reason,
        as_draft=payload.as_draft,
    )


@router.get("/my", response_model=LeaveRequestListResponse)
async def list_my_leave_requests_endpoint(
    status_filter: Optional[LeaveRequestStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    items = leaves.list_leave_requests_for_employee(db, current_user.id, status_filter)
    return LeaveRequestListResponse(
        items=[LeaveRequestOut.model_validate(item) for item in items],
        total=len(items),
    )


@router.get("/{leave_request_id}", response_model=LeaveRequestOut)
async def get_leave_request_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return leaves.get_leave_request_for_actor(db, leave_request_id, current_user.id)


@router.patch("/{leave_request_id}", response_model=LeaveRequestOut)
async def update_leave_draft_endpoint(
    leave_request_id: int,
    payload: LeaveRequestUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Edit a DRAFT request (owner only)."""
    return leaves.update_leave_draft(
        db,
        leave_request_id,
        current_user.id,
        leave_type=payload.leave_type,
        start=payload.start_date,
        end=payload.end_date,
        reason=payload.reason,
        approver_id=payload.approver_id,
    )


@router.delete("/{leave_request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave_draft_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Delete a DRAFT request (owner only)."""
    leaves.delete_leave_draft(db, leave_request_id, current_user.id)


@router.post("/{leave_request_id}/submit", response_model=LeaveRequestOut)
async def submit_leave_draft_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Submit a DRAFT request for approval."""
    return leaves.submit_leave_draft(db, leave_request_id, current_user.id)


@router.post("/{leave_request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave_request_endpoint(
    leave_request_id: int,
    payload: Optional[ApproveActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """
    Approve a PENDING leave request.

    Authority follows the reporting hierarchy: managers approve direct reports,
    senior managers their whole subtree, HR and admins anyone. Approving twice
    returns 409.
    """
    return leaves.approve_leave_request(
        db, leave_request_id, current_user.id, comment=payload.comment if payload else None
    )


@router.post("/{leave_request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave_request_endpoint(
    leave_request_id: int,
    payload: RejectActionRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Reject a PENDING leave request; same authority as approve."""
    return leaves.reject_leave_request(db, leave_request_id, current_user.id, payload.reason)


@router.post("/{leave_request_id}/revert", response_model=LeaveRequestOut)
async def revert_leave_request_endpoint(
    leave_request_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Admin only: return an approved or rejected request to PENDING."""
    return leaves.revert_leave_request(db, leave_request_id, current_user.id)
