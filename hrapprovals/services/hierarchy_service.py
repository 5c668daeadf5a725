"""
Hierarchy service - who may approve whose requests

Authorization rules:
- ADMIN and SUPER_ADMIN: approve anything in every domain
- HR: may approve leave, never expenses
- SENIOR_MANAGER: subject anywhere below them in the reporting tree
- MANAGER: direct reports only
- EMPLOYEE: nothing
Marking an expense paid is a separate financial authority held only by
ADMIN and SUPER_ADMIN. Every check fails closed when either party is
missing or inactive, and nobody approves their own requests.
"""
import enum
import logging
from collections import deque
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session, joinedload

from hrapprovals.core.config import settings
from hrapprovals.core.errors import AuthorizationError
from hrapprovals.models.employee import Employee, Role, ROLE_LEVELS, ADMIN_ROLES
from hrapprovals.models.expense import Expense, ExpenseStatus
from hrapprovals.models.leave import LeaveRequest, LeaveRequestStatus
from hrapprovals.models.overtime import Overtime, OvertimeStatus

logger = logging.getLogger(__name__)


class ApprovalDomain(str, enum.Enum):
    LEAVE = "leave"
    EXPENSE = "expense"
    MARK_EXPENSE_PAID = "mark_expense_paid"


EXPENSE_APPROVER_ROLES = frozenset({Role.MANAGER, Role.SENIOR_MANAGER, Role.ADMIN, Role.SUPER_ADMIN})


def role_of(employee: Optional[Employee]) -> Optional[Role]:
    """Employee role as an enum; None for a missing employee or an unknown role string."""
    if employee is None:
        return None
    try:
        return Role(employee.role)
    except ValueError:
        logger.warning("Unknown role %r on employee_id=%s", employee.role, employee.id)
        return None


def get_active_employee(db: Session, employee_id: Optional[int]) -> Optional[Employee]:
    if employee_id is None:
        return None
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if employee is None or not employee.active:
        return None
    return employee


def is_in_hierarchy(
    db: Session,
    ancestor_id: int,
    subject_id: int,
    max_depth: Optional[int] = None,
) -> bool:
    """
    True if ancestor_id appears in subject_id's upward manager chain.

    Walks manager_id links from the subject, stopping at a root, at
    max_depth hops, or on a revisited id (a corrupted, cyclic chain).
    """
    if max_depth is None:
        max_depth = settings.MAX_HIERARCHY_DEPTH

    current_id = db.query(Employee.manager_id).filter(Employee.id == subject_id).scalar()
    visited: Set[int] = {subject_id}
    depth = 0

    while current_id is not None and depth < max_depth:
        if current_id == ancestor_id:
            return True
        if current_id in visited:
            logger.warning(
                "Cycle in reporting chain: subject_id=%s revisits employee_id=%s", subject_id, current_id
            )
            return False
        visited.add(current_id)
        depth += 1
        current_id = db.query(Employee.manager_id).filter(Employee.id == current_id).scalar()

    return False


def get_subordinate_ids(
    db: Session,
    manager_id: int,
    include_indirect: bool = True,
    max_depth: Optional[int] = None,
) -> List[int]:
    """
    Active employees below manager_id in the reporting tree.

    Breadth-first over direct reports, bounded by max_depth levels and
    guarded against revisiting an id.

    Args:
        db: Database session
        manager_id: Root of the subtree
        include_indirect: False returns direct reports only

    Returns:
        Employee ids in breadth-first order
    """
    if max_depth is None:
        max_depth = settings.MAX_HIERARCHY_DEPTH
    if not include_indirect:
        max_depth = 1

    subordinate_ids: List[int] = []
    visited: Set[int] = {manager_id}
    queue = deque([(manager_id, 0)])

    while queue:
        current_id, depth = queue.popleft()
        if depth >= max_depth:
            continue
        direct_reports = db.query(Employee.id).filter(
            Employee.manager_id == current_id,
            Employee.active == True  # noqa: E712
        ).all()
        for (employee_id,) in direct_reports:
            if employee_id in visited:
                continue
            visited.add(employee_id)
            subordinate_ids.append(employee_id)
            queue.append((employee_id, depth + 1))

    return subordinate_ids


def can_mark_expense_paid(db: Session, actor_id: int) -> bool:
    """Financial authority: only active ADMIN and SUPER_ADMIN may mark expenses paid."""
    actor = get_active_employee(db, actor_id)
    return role_of(actor) in ADMIN_ROLES


def can_approve(db: Session, approver_id: int, subject_id: int, domain: ApprovalDomain) -> bool:
    """
    Decide whether approver_id may act on subject_id's request in domain.

    Args:
        db: Database session
        approver_id: Employee attempting the transition
        subject_id: Employee the request belongs to
        domain: leave, expense, or mark_expense_paid

    Returns:
        True if authorized; False for every unknown, missing, or inactive case
    """
    domain = ApprovalDomain(domain)
    approver = get_active_employee(db, approver_id)
    subject = get_active_employee(db, subject_id)
    if approver is None or subject is None:
        return False
    if approver.id == subject.id:
        return False

    role = role_of(approver)
    if role is None:
        return False

    if domain == ApprovalDomain.MARK_EXPENSE_PAID:
        return role in ADMIN_ROLES

    if role in ADMIN_ROLES:
        return True
    if role == Role.HR:
        return domain == ApprovalDomain.LEAVE
    if role == Role.SENIOR_MANAGER:
        return is_in_hierarchy(db, approver.id, subject.id)
    if role == Role.MANAGER:
        return subject.manager_id == approver.id
    return False


def require_can_approve(db: Session, approver_id: int, subject_id: int, domain: ApprovalDomain) -> None:
    """
    Raise AuthorizationError unless can_approve holds.
    """
    if approver_id == subject_id:
        raise AuthorizationError("You cannot approve or reject your own request")
    if not can_approve(db, approver_id, subject_id, domain):
        logger.info(
            "approval refused: approver_id=%s subject_id=%s domain=%s",
            approver_id, subject_id, ApprovalDomain(domain).value,
        )
        if domain == ApprovalDomain.MARK_EXPENSE_PAID:
            raise AuthorizationError("Only admins can mark expenses as paid")
        raise AuthorizationError(
            f"You do not have authority to act on this employee's {ApprovalDomain(domain).value} requests"
        )


def get_approval_authority(db: Session, actor_id: int) -> Dict:
    """
    Summarise what an actor may approve.

    Unknown or inactive actors get an all-false summary.
    """
    actor = get_active_employee(db, actor_id)
    role = role_of(actor)
    if role is None:
        return {
            "role": None,
            "authority_level": 0,
            "can_approve_leave": False,
            "can_approve_expense": False,
            "can_mark_as_paid": False,
            "is_manager": False,
            "is_senior_manager": False,
            "is_hr": False,
            "is_admin": False,
        }

    level = ROLE_LEVELS[role]
    return {
        "role": role.value,
        "authority_level": level,
        "can_approve_leave": level >= ROLE_LEVELS[Role.MANAGER],
        "can_approve_expense": role in EXPENSE_APPROVER_ROLES,
        "can_mark_as_paid": role in ADMIN_ROLES,
        "is_manager": level >= ROLE_LEVELS[Role.MANAGER],
        "is_senior_manager": level >= ROLE_LEVELS[Role.SENIOR_MANAGER],
        "is_hr": role == Role.HR,
        "is_admin": level >= ROLE_LEVELS[Role.ADMIN],
    }


def _scope_subject_ids(db: Session, actor: Employee, role: Role) -> Optional[List[int]]:
    """None means every employee; a list restricts to those subject ids."""
    if role in ADMIN_ROLES or role == Role.HR:
        return None
    if role == Role.SENIOR_MANAGER:
        return get_subordinate_ids(db, actor.id, include_indirect=True)
    if role == Role.MANAGER:
        return get_subordinate_ids(db, actor.id, include_indirect=False)
    return []


def get_pending_approvals_for_actor(db: Session, actor_id: int) -> Dict[str, List]:
    """
    Pending items the actor could approve right now.

    HR sees every pending leave and no expenses; managers see their scope.
    The actor's own requests are never listed.

    Returns:
        {"leaves": [LeaveRequest], "expenses": [Expense], "overtime": [Overtime]}
    """
    actor = get_active_employee(db, actor_id)
    role = role_of(actor)
    empty = {"leaves": [], "expenses": [], "overtime": []}
    if role is None or role == Role.EMPLOYEE:
        return empty

    subject_ids = _scope_subject_ids(db, actor, role)
    if subject_ids is not None and not subject_ids:
        return empty

    leave_query = db.query(LeaveRequest).options(joinedload(LeaveRequest.employee)).filter(
        LeaveRequest.status == LeaveRequestStatus.PENDING,
        LeaveRequest.employee_id != actor.id,
    )
    overtime_query = db.query(Overtime).filter(
        Overtime.status == OvertimeStatus.PENDING,
        Overtime.employee_id != actor.id,
    )
    expense_query = db.query(Expense).filter(
        Expense.status == ExpenseStatus.PENDING,
        Expense.employee_id != actor.id,
    )
    if subject_ids is not None:
        leave_query = leave_query.filter(LeaveRequest.employee_id.in_(subject_ids))
        overtime_query = overtime_query.filter(Overtime.employee_id.in_(subject_ids))
        expense_query = expense_query.filter(Expense.employee_id.in_(subject_ids))

    expenses = []
    if role in EXPENSE_APPROVER_ROLES:
        expenses = expense_query.order_by(Expense.created_at.desc(), Expense.id.desc()).all()

    return {
        "leaves": leave_query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all(),
        "expenses": expenses,
        "overtime": overtime_query.order_by(Overtime.created_at.desc(), Overtime.id.desc()).all(),
    }
