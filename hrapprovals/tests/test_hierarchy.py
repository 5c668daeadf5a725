"""
Tests for hierarchy authorization
"""
from datetime import date
from decimal import Decimal

from hrapprovals.models.employee import Role
from hrapprovals.models.expense import Expense, ExpenseStatus
from hrapprovals.models.leave import LeaveRequest, LeaveRequestStatus, LeaveType
from hrapprovals.services.hierarchy_service import (
    ApprovalDomain,
    can_approve,
    can_mark_expense_paid,
    get_approval_authority,
    get_pending_approvals_for_actor,
    get_subordinate_ids,
    is_in_hierarchy,
)


def test_is_in_hierarchy_walks_the_manager_chain(db, org):
    assert is_in_hierarchy(db, org["manager"].id, org["alice"].id)
    assert is_in_hierarchy(db, org["senior"].id, org["alice"].id)
    assert not is_in_hierarchy(db, org["alice"].id, org["manager"].id)
    assert not is_in_hierarchy(db, org["hr"].id, org["alice"].id)


def test_is_in_hierarchy_respects_max_depth(db, org):
    assert not is_in_hierarchy(db, org["senior"].id, org["alice"].id, max_depth=1)
    assert is_in_hierarchy(db, org["senior"].id, org["alice"].id, max_depth=2)


def test_is_in_hierarchy_terminates_on_cycle(db, make_employee):
    a = make_employee("Cycle A", Role.MANAGER)
    b = make_employee("Cycle B", Role.MANAGER, manager=a)
    a.manager_id = b.id
    db.commit()
    outsider = make_employee("Outsider", Role.SENIOR_MANAGER)

    assert not is_in_hierarchy(db, outsider.id, a.id)
    assert is_in_hierarchy(db, b.id, a.id)


def test_get_subordinate_ids_direct_and_indirect(db, org):
    direct = get_subordinate_ids(db, org["senior"].id, include_indirect=False)
    assert direct == [org["manager"].id]

    everyone = get_subordinate_ids(db, org["senior"].id)
    assert set(everyone) == {org["manager"].id, org["alice"].id, org["bob"].id}


def test_get_subordinate_ids_skips_inactive(db, org, make_employee):
    make_employee("Gone", Role.EMPLOYEE, manager=org["manager"], active=False)
    assert set(get_subordinate_ids(db, org["manager"].id)) == {org["alice"].id, org["bob"].id}


def test_manager_approves_direct_reports_only(db, org, make_employee):
    nested = make_employee("Nested", Role.EMPLOYEE, manager=org["alice"])
    assert can_approve(db, org["manager"].id, org["alice"].id, ApprovalDomain.LEAVE)
    assert can_approve(db, org["manager"].id, org["alice"].id, ApprovalDomain.EXPENSE)
    assert not can_approve(db, org["manager"].id, nested.id, ApprovalDomain.LEAVE)


def test_senior_manager_approves_whole_subtree(db, org):
    assert can_approve(db, org["senior"].id, org["manager"].id, ApprovalDomain.LEAVE)
    assert can_approve(db, org["senior"].id, org["alice"].id, ApprovalDomain.LEAVE)
    assert can_approve(db, org["senior"].id, org["alice"].id, ApprovalDomain.EXPENSE)
    assert not can_approve(db, org["senior"].id, org["hr"].id, ApprovalDomain.LEAVE)


def test_hr_approves_leave_but_not_expenses(db, org):
    assert can_approve(db, org["hr"].id, org["alice"].id, ApprovalDomain.LEAVE)
    assert not can_approve(db, org["hr"].id, org["alice"].id, ApprovalDomain.EXPENSE)
    assert not can_approve(db, org["hr"].id, org["alice"].id, ApprovalDomain.MARK_EXPENSE_PAID)


def test_admin_approves_everything(db, org):
    for domain in ApprovalDomain:
        assert can_approve(db, org["admin"].id, org["alice"].id, domain)


def test_employee_approves_nothing(db, org):
    assert not can_approve(db, org["alice"].id, org["bob"].id, ApprovalDomain.LEAVE)
    assert not can_approve(db, org["alice"].id, org["bob"].id, ApprovalDomain.EXPENSE)


def test_nobody_approves_their_own_request(db, org):
    for key in ("admin", "hr", "manager"):
        assert not can_approve(db, org[key].id, org[key].id, ApprovalDomain.LEAVE)


def test_fails_closed_for_missing_or_inactive(db, org, make_employee):
    former = make_employee("Former Manager", Role.MANAGER, active=False)
    report = make_employee("Orphan", Role.EMPLOYEE, manager=former)
    assert not can_approve(db, former.id, report.id, ApprovalDomain.LEAVE)
    assert not can_approve(db, 99999, org["alice"].id, ApprovalDomain.LEAVE)
    assert not can_approve(db, org["admin"].id, 99999, ApprovalDomain.LEAVE)


def test_unknown_role_string_fails_closed(db, org, make_employee):
    odd = make_employee("Odd", Role.MANAGER)
    odd.role = "INTERN"
    db.commit()
    assert not can_approve(db, odd.id, org["alice"].id, ApprovalDomain.LEAVE)


def test_mark_paid_authority_is_admin_only(db, org, make_employee):
    super_admin = make_employee("Root", Role.SUPER_ADMIN)
    assert can_mark_expense_paid(db, org["admin"].id)
    assert can_mark_expense_paid(db, super_admin.id)
    assert not can_mark_expense_paid(db, org["senior"].id)
    assert not can_mark_expense_paid(db, org["hr"].id)


def test_get_approval_authority(db, org):
    hr = get_approval_authority(db, org["hr"].id)
    assert hr["role"] == "HR"
    assert hr["can_approve_leave"] is True
    assert hr["can_approve_expense"] is False
    assert hr["can_mark_as_paid"] is False
    assert hr["is_hr"] is True

    manager = get_approval_authority(db, org["manager"].id)
    assert manager["authority_level"] == 2
    assert manager["can_approve_expense"] is True
    assert manager["is_senior_manager"] is False

    employee = get_approval_authority(db, org["alice"].id)
    assert employee["can_approve_leave"] is False

    unknown = get_approval_authority(db, 99999)
    assert unknown["role"] is None
    assert unknown["authority_level"] == 0


def _pending_leave(db, employee):
    leave = LeaveRequest(
        employee_id=employee.id,
        leave_type=LeaveType.PAID,
        start_date=date(2030, 6, 3),
        end_date=date(2030, 6, 4),
        number_of_days=2,
        reason="Pending leave for the queue",
        status=LeaveRequestStatus.PENDING,
    )
    db.add(leave)
    db.commit()
    return leave


def _pending_expense(db, employee):
    expense = Expense(
        employee_id=employee.id,
        expense_date=date(2030, 6, 1),
        category="Travel",
        amount=Decimal("42.50"),
        currency="GBP",
        status=ExpenseStatus.PENDING,
    )
    db.add(expense)
    db.commit()
    return expense


def test_pending_approvals_are_scoped_by_role(db, org, make_employee):
    outsider = make_employee("Outsider", Role.EMPLOYEE)
    alice_leave = _pending_leave(db, org["alice"])
    manager_leave = _pending_leave(db, org["manager"])
    outsider_leave = _pending_leave(db, outsider)
    alice_expense = _pending_expense(db, org["alice"])

    manager_view = get_pending_approvals_for_actor(db, org["manager"].id)
    assert [l.id for l in manager_view["leaves"]] == [alice_leave.id]
    assert [e.id for e in manager_view["expenses"]] == [alice_expense.id]

    senior_view = get_pending_approvals_for_actor(db, org["senior"].id)
    assert {l.id for l in senior_view["leaves"]} == {alice_leave.id, manager_leave.id}

    hr_view = get_pending_approvals_for_actor(db, org["hr"].id)
    assert {l.id for l in hr_view["leaves"]} == {alice_leave.id, manager_leave.id, outsider_leave.id}
    assert hr_view["expenses"] == []

    assert get_pending_approvals_for_actor(db, org["alice"].id) == {"leaves": [], "expenses": [], "overtime": []}
