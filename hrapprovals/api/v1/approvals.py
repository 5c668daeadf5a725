"""
Approval queue and authority endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.models.employee import Employee
from hrapprovals.schemas.approval import PendingApprovalsResponse, ApprovalAuthorityOut, CanApproveResponse
from hrapprovals.services.hierarchy_service import (
    ApprovalDomain,
    can_approve,
    get_approval_authority,
    get_pending_approvals_for_actor,
)

router = APIRouter()


@router.get("/pending", response_model=PendingApprovalsResponse)
async def pending_approvals_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """
    Items awaiting the current user's decision.

    - ADMIN/SUPER_ADMIN: everything pending
    - HR: every pending leave and overtime claim, no expenses
    - SENIOR_MANAGER: their whole reporting subtree
    - MANAGER: direct reports
    """
    return get_pending_approvals_for_actor(db, current_user.id)


@router.get("/authority", response_model=ApprovalAuthorityOut)
async def approval_authority_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return get_approval_authority(db, current_user.id)


@router.get("/can-approve", response_model=CanApproveResponse)
async def can_approve_endpoint(
    subject_id: int = Query(..., description="Employee whose request would be approved"),
    domain: ApprovalDomain = Query(ApprovalDomain.LEAVE),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return CanApproveResponse(
        approver_id=current_user.id,
        subject_id=subject_id,
        domain=domain.value,
        can_approve=can_approve(db, current_user.id, subject_id, domain),
    )
