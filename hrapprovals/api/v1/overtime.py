"""
Overtime endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.models.employee import Employee
from hrapprovals.schemas.overtime import OvertimeCreate, OvertimeOut, OvertimeRejectRequest
from hrapprovals.services import overtime_service

router = APIRouter()


@router.post("", response_model=OvertimeOut, status_code=status.HTTP_201_CREATED)
async def create_overtime_endpoint(
    payload: OvertimeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Claim overtime for a date; one claim per date (409 on duplicates)."""
    return overtime_service.create_overtime(
        db,
        employee_id=current_user.id,
        work_date=payload.work_date,
        scheduled_hours=payload.scheduled_hours,
        worked_hours=payload.worked_hours,
        reason=payload.reason,
    )


@router.post("/{overtime_id}/approve", response_model=OvertimeOut)
async def approve_overtime_endpoint(
    overtime_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return overtime_service.approve_overtime(db, overtime_id, current_user.id)


@router.post("/{overtime_id}/reject", response_model=OvertimeOut)
async def reject_overtime_endpoint(
    overtime_id: int,
    payload: Optional[OvertimeRejectRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return overtime_service.reject_overtime(
        db, overtime_id, current_user.id, reason=payload.reason if payload else None
    )
