"""
Expense endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.models.employee import Employee
from hrapprovals.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpenseListResponse
from hrapprovals.schemas.leave import RejectActionRequest
from hrapprovals.services import expense_service as expenses

router = APIRouter()


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense_endpoint(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return expenses.create_expense(
        db,
        employee_id=current_user.id,
        expense_date=payload.expense_date,
        category=payload.category,
        amount=payload.amount,
        currency=payload.currency,
        description=payload.description,
    )


@router.get("/my", response_model=ExpenseListResponse)
async def list_my_expenses_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    items = expenses.list_expenses_for_employee(db, current_user.id)
    return ExpenseListResponse(items=[ExpenseOut.model_validate(i) for i in items], total=len(items))


@router.patch("/{expense_id}", response_model=ExpenseOut)
async def update_expense_endpoint(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Edit a PENDING expense (claimant only)."""
    return expenses.update_expense(db, expense_id, current_user.id, **payload.model_dump(exclude_unset=True))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense_endpoint(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    expenses.delete_expense(db, expense_id, current_user.id)


@router.post("/{expense_id}/approve", response_model=ExpenseOut)
async def approve_expense_endpoint(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Approve a PENDING expense. HR cannot approve expenses."""
    return expenses.approve_expense(db, expense_id, current_user.id)


@router.post("/{expense_id}/decline", response_model=ExpenseOut)
async def decline_expense_endpoint(
    expense_id: int,
    payload: RejectActionRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return expenses.decline_expense(db, expense_id, current_user.id, payload.reason)


@router.post("/{expense_id}/mark-paid", response_model=ExpenseOut)
async def mark_expense_paid_endpoint(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Mark an APPROVED expense as paid (admin and super-admin only)."""
    return expenses.mark_expense_paid(db, expense_id, current_user.id)


@router.post("/{expense_id}/revert", response_model=ExpenseOut)
async def revert_expense_endpoint(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Admin only: return a decided expense to PENDING."""
    return expenses.revert_expense(db, expense_id, current_user.id)
