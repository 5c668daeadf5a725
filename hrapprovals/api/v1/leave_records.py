"""
Leave record (absence ledger) endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.core.errors import AuthorizationError
from hrapprovals.models.employee import Employee
from hrapprovals.schemas.leave import ConflictsResponse, LeaveRecordOut
from hrapprovals.services import leave_record_service
from hrapprovals.services.hierarchy_service import ApprovalDomain, can_approve
from hrapprovals.services.overlap_service import find_conflicts

router = APIRouter()


@router.get("/conflicts", response_model=ConflictsResponse)
async def conflicts_endpoint(
    start_date: date = Query(...),
    end_date: date = Query(...),
    employee_id: Optional[int] = Query(None, description="Defaults to the current user"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Pending or approved leave of the employee overlapping the closed range."""
    subject_id = employee_id or current_user.id
    if subject_id != current_user.id and not can_approve(db, current_user.id, subject_id, ApprovalDomain.LEAVE):
        raise AuthorizationError("You cannot view this employee's leave")
    conflicts = find_conflicts(db, subject_id, start_date, end_date)
    return ConflictsResponse(
        employee_id=subject_id,
        start_date=start_date,
        end_date=end_date,
        has_conflicts=bool(conflicts),
        conflicts=[LeaveRecordOut.model_validate(r) for r in conflicts],
    )


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave_record_endpoint(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Admin only. Deleting an approved annual record recalculates the balance."""
    leave_record_service.delete_leave_record(db, record_id, current_user.id)
