"""
Tests for the expense claim lifecycle
"""
from datetime import date
from decimal import Decimal

import pytest

from hrapprovals.core.errors import AuthorizationError, StateError, ValidationError
from hrapprovals.models.expense import Expense, ExpenseStatus
from hrapprovals.models.notification import Notification, NotificationType
from hrapprovals.services import expense_service as expenses


def _claim(db, employee, amount="120.00"):
    return expenses.create_expense(
        db, employee.id, expense_date=date(2030, 2, 14), category="Travel", amount=Decimal(amount),
        currency="gbp", description="Train to client site",
    )


def test_create_expense(db, org):
    expense = _claim(db, org["alice"])
    assert expense.status == ExpenseStatus.PENDING
    assert expense.currency == "GBP"
    assert expense.amount == Decimal("120.00")


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_create_expense_rejects_non_positive_amount(db, org, amount):
    with pytest.raises(ValidationError):
        _claim(db, org["alice"], amount=amount)


def test_owner_edits_and_deletes_pending_claim(db, org):
    expense = _claim(db, org["alice"])
    updated = expenses.update_expense(db, expense.id, org["alice"].id, amount=Decimal("99.99"), category="Hotel")
    assert updated.amount == Decimal("99.99")
    assert updated.category == "Hotel"

    with pytest.raises(AuthorizationError):
        expenses.update_expense(db, expense.id, org["bob"].id, amount=Decimal("1"))

    expenses.delete_expense(db, expense.id, org["alice"].id)
    assert db.query(Expense).count() == 0


def test_manager_approves_and_admin_marks_paid(db, org):
    expense = _claim(db, org["alice"])

    approved = expenses.approve_expense(db, expense.id, org["manager"].id)
    assert approved.status == ExpenseStatus.APPROVED
    assert approved.approved_by_id == org["manager"].id

    with pytest.raises(AuthorizationError, match="Only admins"):
        expenses.mark_expense_paid(db, expense.id, org["senior"].id)

    paid = expenses.mark_expense_paid(db, expense.id, org["admin"].id)
    assert paid.status == ExpenseStatus.PAID
    assert paid.paid_by_id == org["admin"].id
    assert paid.paid_at is not None

    types = [n.notification_type for n in db.query(Notification).filter(
        Notification.recipient_id == org["alice"].id
    ).order_by(Notification.id).all()]
    assert types == [NotificationType.EXPENSE_APPROVED, NotificationType.EXPENSE_PAID]


def test_hr_cannot_approve_expenses(db, org):
    expense = _claim(db, org["alice"])
    with pytest.raises(AuthorizationError):
        expenses.approve_expense(db, expense.id, org["hr"].id)


def test_cannot_mark_pending_claim_paid(db, org):
    expense = _claim(db, org["alice"])
    with pytest.raises(StateError, match="already pending"):
        expenses.mark_expense_paid(db, expense.id, org["admin"].id)


def test_decline_requires_reason(db, org):
    expense = _claim(db, org["alice"])
    with pytest.raises(ValidationError):
        expenses.decline_expense(db, expense.id, org["manager"].id, "")

    declined = expenses.decline_expense(db, expense.id, org["manager"].id, "No receipt attached")
    assert declined.status == ExpenseStatus.DECLINED
    assert declined.decline_reason == "No receipt attached"

    with pytest.raises(StateError):
        expenses.approve_expense(db, expense.id, org["manager"].id)
    with pytest.raises(StateError):
        expenses.update_expense(db, expense.id, org["alice"].id, amount=Decimal("10"))


def test_admin_revert_clears_decision_fields(db, org):
    expense = _claim(db, org["alice"])
    expenses.approve_expense(db, expense.id, org["manager"].id)
    expenses.mark_expense_paid(db, expense.id, org["admin"].id)

    with pytest.raises(AuthorizationError):
        expenses.revert_expense(db, expense.id, org["manager"].id)

    reverted = expenses.revert_expense(db, expense.id, org["admin"].id)
    assert reverted.status == ExpenseStatus.PENDING
    assert reverted.approved_by_id is None
    assert reverted.paid_by_id is None
    assert reverted.paid_at is None


def test_revert_pending_claim_is_a_state_error(db, org):
    expense = _claim(db, org["alice"])
    with pytest.raises(StateError):
        expenses.revert_expense(db, expense.id, org["admin"].id)
