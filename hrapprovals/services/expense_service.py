"""
Expense service - expense claim lifecycle

PENDING -> APPROVED | DECLINED by an approver, APPROVED -> PAID by an
admin, and admin revert of any decision back to PENDING. Owners may edit
or delete their claim only while it is PENDING.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from hrapprovals.core.errors import AuthorizationError, NotFoundError, StateError, ValidationError
from hrapprovals.models.employee import ADMIN_ROLES
from hrapprovals.models.expense import Expense, ExpenseStatus
from hrapprovals.models.notification import NotificationPriority, NotificationType
from hrapprovals.services.audit_service import log_audit
from hrapprovals.services.hierarchy_service import (
    ApprovalDomain,
    get_active_employee,
    require_can_approve,
    role_of,
)
from hrapprovals.services.side_effect_dispatcher import dispatch_notification
from hrapprovals.services.transitions import transition_or_raise
from hrapprovals.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

LABEL = "Expense"

CLEARED_AUDIT_FIELDS = {
    "approved_by_id": None,
    "approved_at": None,
    "declined_by_id": None,
    "declined_at": None,
    "decline_reason": None,
    "paid_by_id": None,
    "paid_at": None,
}


def _validate_amount(amount) -> Decimal:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    return amount


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFoundError(f"Expense with id {expense_id} not found")
    return expense


def list_expenses_for_employee(db: Session, employee_id: int) -> List[Expense]:
    return db.query(Expense).filter(Expense.employee_id == employee_id).order_by(
        Expense.expense_date.desc(), Expense.id.desc()
    ).all()


def create_expense(
    db: Session,
    employee_id: int,
    expense_date: date,
    category: str,
    amount,
    currency: str = "GBP",
    description: Optional[str] = None,
) -> Expense:
    if get_active_employee(db, employee_id) is None:
        raise NotFoundError(f"Employee with id {employee_id} not found")
    if not category or not category.strip():
        raise ValidationError("Category is required")

    expense = Expense(
        employee_id=employee_id,
        expense_date=expense_date,
        category=category.strip(),
        description=description,
        amount=_validate_amount(amount),
        currency=currency.upper(),
        status=ExpenseStatus.PENDING,
    )
    db.add(expense)
    db.flush()
    log_audit(
        db=db,
        actor_id=employee_id,
        action="EXPENSE_CREATE",
        entity_type="expenses",
        entity_id=expense.id,
        meta={"amount": expense.amount, "currency": expense.currency, "category": expense.category},
    )
    db.refresh(expense)
    return expense


def _require_owner(expense: Expense, actor_id: int) -> None:
    if expense.employee_id != actor_id:
        raise AuthorizationError("Only the claimant can change this expense")


def update_expense(db: Session, expense_id: int, actor_id: int, **changes) -> Expense:
    """Owner edit while PENDING. Accepts expense_date, category, description, amount, currency."""
    expense = get_expense(db, expense_id)
    _require_owner(expense, actor_id)
    if expense.status != ExpenseStatus.PENDING:
        raise StateError(LABEL, expense.status.value)

    values = {}
    for field in ("expense_date", "category", "description", "amount", "currency"):
        value = changes.get(field)
        if value is None:
            continue
        if field == "amount":
            value = _validate_amount(value)
        elif field == "currency":
            value = value.upper()
        values[field] = value
    if not values:
        return expense

    transition_or_raise(
        db, expense,
        expected=ExpenseStatus.PENDING,
        new_status=ExpenseStatus.PENDING,
        action="edit",
        values=values,
        label=LABEL,
    )
    log_audit(db=db, actor_id=actor_id, action="EXPENSE_UPDATE", entity_type="expenses", entity_id=expense.id, meta=values)
    db.refresh(expense)
    return expense


def delete_expense(db: Session, expense_id: int, actor_id: int) -> None:
    expense = get_expense(db, expense_id)
    _require_owner(expense, actor_id)
    result = db.execute(
        delete(Expense)
        .where(Expense.id == expense_id, Expense.status == ExpenseStatus.PENDING)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        current = db.query(Expense.status).filter(Expense.id == expense_id).scalar()
        raise StateError(LABEL, current.value if current is not None else None)
    db.expunge(expense)
    log_audit(db=db, actor_id=actor_id, action="EXPENSE_DELETE", entity_type="expenses", entity_id=expense_id)


def approve_expense(db: Session, expense_id: int, actor_id: int) -> Expense:
    """PENDING -> APPROVED. HR has no expense authority."""
    expense = get_expense(db, expense_id)
    require_can_approve(db, actor_id, expense.employee_id, ApprovalDomain.EXPENSE)
    transition_or_raise(
        db, expense,
        expected=ExpenseStatus.PENDING,
        new_status=ExpenseStatus.APPROVED,
        action="approve",
        values={"approved_by_id": actor_id, "approved_at": now_utc()},
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="EXPENSE_APPROVE", entity_type="expenses", entity_id=expense.id,
        meta={"employee_id": expense.employee_id, "amount": expense.amount},
    )
    db.refresh(expense)
    dispatch_notification(
        db, f"expense_approved:{expense.id}", expense.employee_id,
        notification_type=NotificationType.EXPENSE_APPROVED,
        title="Expense approved",
        message=f"Your expense of {expense.amount} {expense.currency} has been approved.",
        priority=NotificationPriority.MEDIUM,
        related_entity_type="expenses",
        related_entity_id=expense.id,
    )
    return expense


def decline_expense(db: Session, expense_id: int, actor_id: int, reason: str) -> Expense:
    """PENDING -> DECLINED; the reason is required."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A decline reason is required")
    expense = get_expense(db, expense_id)
    require_can_approve(db, actor_id, expense.employee_id, ApprovalDomain.EXPENSE)
    transition_or_raise(
        db, expense,
        expected=ExpenseStatus.PENDING,
        new_status=ExpenseStatus.DECLINED,
        action="decline",
        values={"declined_by_id": actor_id, "declined_at": now_utc(), "decline_reason": reason},
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="EXPENSE_DECLINE", entity_type="expenses", entity_id=expense.id,
        meta={"employee_id": expense.employee_id, "reason": reason},
    )
    db.refresh(expense)
    dispatch_notification(
        db, f"expense_declined:{expense.id}", expense.employee_id,
        notification_type=NotificationType.EXPENSE_DECLINED,
        title="Expense declined",
        message=f"Your expense of {expense.amount} {expense.currency} was declined: {reason}",
        priority=NotificationPriority.HIGH,
        related_entity_type="expenses",
        related_entity_id=expense.id,
    )
    return expense


def mark_expense_paid(db: Session, expense_id: int, actor_id: int) -> Expense:
    """APPROVED -> PAID; admin or super-admin only."""
    expense = get_expense(db, expense_id)
    require_can_approve(db, actor_id, expense.employee_id, ApprovalDomain.MARK_EXPENSE_PAID)
    transition_or_raise(
        db, expense,
        expected=ExpenseStatus.APPROVED,
        new_status=ExpenseStatus.PAID,
        action="mark_paid",
        values={"paid_by_id": actor_id, "paid_at": now_utc()},
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="EXPENSE_MARK_PAID", entity_type="expenses", entity_id=expense.id,
        meta={"employee_id": expense.employee_id, "amount": expense.amount},
    )
    db.refresh(expense)
    dispatch_notification(
        db, f"expense_paid:{expense.id}", expense.employee_id,
        notification_type=NotificationType.EXPENSE_PAID,
        title="Expense paid",
        message=f"Your expense of {expense.amount} {expense.currency} has been paid.",
        priority=NotificationPriority.MEDIUM,
        related_entity_type="expenses",
        related_entity_id=expense.id,
    )
    return expense


def revert_expense(db: Session, expense_id: int, actor_id: int) -> Expense:
    """
    Admin-only: APPROVED | DECLINED | PAID -> PENDING, clearing every
    approval, decline and payment field.
    """
    actor = get_active_employee(db, actor_id)
    if role_of(actor) not in ADMIN_ROLES:
        raise AuthorizationError("Only admins can revert an expense decision")
    expense = get_expense(db, expense_id)
    before = expense.status.value
    transition_or_raise(
        db, expense,
        expected=(ExpenseStatus.APPROVED, ExpenseStatus.DECLINED, ExpenseStatus.PAID),
        new_status=ExpenseStatus.PENDING,
        action="revert",
        values=dict(CLEARED_AUDIT_FIELDS),
        label=LABEL,
    )
    log_audit(
        db=db, actor_id=actor_id, action="EXPENSE_REVERT", entity_type="expenses", entity_id=expense.id,
        meta={"employee_id": expense.employee_id, "previous_status": before},
    )
    db.refresh(expense)
    return expense
