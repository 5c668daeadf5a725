"""
Annual leave balance endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user, require_roles
from hrapprovals.core.errors import NotFoundError
from hrapprovals.models.employee import Employee, Role
from hrapprovals.models.leave_balance import AnnualLeaveBalance
from hrapprovals.schemas.balance import BalanceCreate, AdjustmentCreate, BalanceOut
from hrapprovals.services import balance_service

router = APIRouter()


@router.get("/me", response_model=BalanceOut)
async def my_balance_endpoint(
    on_date: Optional[date] = Query(None, alias="date", description="Day inside the leave year (default today)"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Current user's annual leave balance for the leave year containing the date."""
    balance = balance_service.get_current_balance(db, current_user.id, on_date)
    if balance is None:
        raise NotFoundError("No annual leave balance for this leave year")
    return balance


@router.post("", response_model=BalanceOut, status_code=status.HTTP_201_CREATED)
async def create_balance_endpoint(
    payload: BalanceCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN, Role.HR))
):
    return balance_service.create_balance(
        db,
        employee_id=payload.employee_id,
        leave_year_start=payload.leave_year_start,
        actor_id=current_user.id,
        entitlement_days=payload.entitlement_days,
        carry_over_days=payload.carry_over_days,
        leave_year_end=payload.leave_year_end,
    )


@router.post("/{balance_id}/adjustments", response_model=BalanceOut)
async def add_adjustment_endpoint(
    balance_id: int,
    payload: AdjustmentCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN, Role.HR))
):
    """Append a signed adjustment; adjustments are never edited."""
    return balance_service.add_adjustment(db, balance_id, payload.days, payload.reason, current_user.id)


@router.post("/{balance_id}/recalculate", response_model=BalanceOut)
async def recalculate_balance_endpoint(
    balance_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN, Role.HR))
):
    balance = db.query(AnnualLeaveBalance).filter(AnnualLeaveBalance.id == balance_id).first()
    if balance is None:
        raise NotFoundError(f"Balance with id {balance_id} not found")
    return balance_service.recalculate(db, balance.employee_id, balance.leave_year_start, balance.leave_year_end)
