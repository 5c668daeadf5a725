"""
Side-effect dispatcher - best-effort work after a committed transition

Each task runs independently: a failure is logged, its partial work rolled
back, and it is recorded as a SideEffectFailure in the report. Nothing here
ever undoes or fails the transition that triggered it.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Tuple

from sqlalchemy.orm import Session

from hrapprovals.models.employee import Employee
from hrapprovals.models.leave import LeaveRecordType, LeaveRequest, record_type_for
from hrapprovals.models.notification import NotificationPriority, NotificationType
from hrapprovals.services import balance_service, shift_service
from hrapprovals.services.notification_service import create_notification

logger = logging.getLogger(__name__)


@dataclass
class SideEffectFailure:
    task: str
    error: str


@dataclass
class DispatchReport:
    trigger: str
    succeeded: List[str] = field(default_factory=list)
    failures: List[SideEffectFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SideEffectDispatcher:
    """
    FIFO queue of named side-effect tasks run against one session.

    Tasks may enqueue further tasks while the queue drains.
    """

    def __init__(self, db: Session, trigger: str):
        self.db = db
        self.trigger = trigger
        self._queue: Deque[Tuple[str, Callable[..., Any], tuple, dict]] = deque()

    def add(self, name: str, func: Callable[..., Any], *args, **kwargs) -> "SideEffectDispatcher":
        self._queue.append((name, func, args, kwargs))
        return self

    def run(self) -> DispatchReport:
        report = DispatchReport(trigger=self.trigger)
        while self._queue:
            name, func, args, kwargs = self._queue.popleft()
            try:
                func(*args, **kwargs)
            except Exception as exc:
                logger.exception("Side effect failed: trigger=%s task=%s", self.trigger, name)
                self.db.rollback()
                report.failures.append(SideEffectFailure(task=name, error=str(exc)))
            else:
                report.succeeded.append(name)
        logger.info(
            "Side effects done: trigger=%s succeeded=%d failed=%d",
            self.trigger, len(report.succeeded), len(report.failures),
        )
        return report


def _department_colleague_ids(db: Session, subject: Employee) -> List[int]:
    if subject.department_id is None:
        return []
    rows = db.query(Employee.id).filter(
        Employee.department_id == subject.department_id,
        Employee.id != subject.id,
        Employee.active == True  # noqa: E712
    ).order_by(Employee.id).all()
    return [row[0] for row in rows]


def _leave_range_text(leave_request: LeaveRequest) -> str:
    if leave_request.start_date == leave_request.end_date:
        return leave_request.start_date.isoformat()
    return f"{leave_request.start_date.isoformat()} to {leave_request.end_date.isoformat()}"


def dispatch_leave_approved(db: Session, leave_request: LeaveRequest) -> DispatchReport:
    """
    Run the post-approval fan-out for a leave request, in order:
    balance recalculation (annual only), shift cancellation, team
    notifications, then the subject's notification.
    """
    request_id = leave_request.id
    employee_id = leave_request.employee_id
    start, end = leave_request.start_date, leave_request.end_date
    leave_type = leave_request.leave_type
    subject = db.query(Employee).filter(Employee.id == employee_id).first()
    subject_name = subject.name if subject else f"Employee {employee_id}"
    range_text = _leave_range_text(leave_request)

    dispatcher = SideEffectDispatcher(db, trigger=f"leave_approved:{request_id}")

    if record_type_for(leave_type) == LeaveRecordType.ANNUAL:
        dispatcher.add("recalculate_balance", balance_service.recalculate_for_range, db, employee_id, start, end)

    dispatcher.add(
        "cancel_shifts",
        shift_service.cancel_shifts_for_leave,
        db, employee_id, start, end,
        note=f"Cancelled: approved leave (request {request_id})",
    )

    def notify_subject():
        create_notification(
            db,
            employee_id,
            notification_type=NotificationType.LEAVE_APPROVED,
            title="Leave approved",
            message=f"Your {leave_type.value.lower()} leave for {range_text} has been approved.",
            priority=NotificationPriority.HIGH,
            related_entity_type="leave_requests",
            related_entity_id=request_id,
        )

    def enqueue_notifications():
        # Team notifications first, then the subject, whatever the colleague lookup does
        try:
            colleague_ids = _department_colleague_ids(db, subject) if subject is not None else []
            for colleague_id in colleague_ids:
                dispatcher.add(
                    f"notify_team_member:{colleague_id}",
                    create_notification,
                    db,
                    colleague_id,
                    notification_type=NotificationType.TEAM_MEMBER_ON_LEAVE,
                    title="Team member on leave",
                    message=f"{subject_name} will be on leave {range_text}.",
                    priority=NotificationPriority.LOW,
                    related_entity_type="leave_requests",
                    related_entity_id=request_id,
                )
        finally:
            dispatcher.add("notify_subject", notify_subject)

    dispatcher.add("enqueue_notifications", enqueue_notifications)

    return dispatcher.run()


def dispatch_leave_rejected(db: Session, leave_request: LeaveRequest) -> DispatchReport:
    dispatcher = SideEffectDispatcher(db, trigger=f"leave_rejected:{leave_request.id}")
    dispatcher.add(
        "notify_subject",
        create_notification,
        db,
        leave_request.employee_id,
        notification_type=NotificationType.LEAVE_REJECTED,
        title="Leave rejected",
        message=(
            f"Your leave for {_leave_range_text(leave_request)} was rejected: "
            f"{leave_request.rejection_reason}"
        ),
        priority=NotificationPriority.HIGH,
        related_entity_type="leave_requests",
        related_entity_id=leave_request.id,
    )
    return dispatcher.run()


def dispatch_leave_submitted(db: Session, leave_request: LeaveRequest) -> DispatchReport:
    dispatcher = SideEffectDispatcher(db, trigger=f"leave_submitted:{leave_request.id}")
    if leave_request.approver_id is not None:
        subject = db.query(Employee).filter(Employee.id == leave_request.employee_id).first()
        dispatcher.add(
            "notify_approver",
            create_notification,
            db,
            leave_request.approver_id,
            notification_type=NotificationType.LEAVE_SUBMITTED,
            title="Leave request awaiting approval",
            message=(
                f"{subject.name if subject else 'An employee'} requested "
                f"{leave_request.number_of_days} day(s) of leave for {_leave_range_text(leave_request)}."
            ),
            priority=NotificationPriority.HIGH,
            related_entity_type="leave_requests",
            related_entity_id=leave_request.id,
        )
    return dispatcher.run()


def dispatch_notification(
    db: Session,
    trigger: str,
    recipient_id: int,
    **kwargs,
) -> DispatchReport:
    """Single best-effort notification, reported like any other side effect."""
    dispatcher = SideEffectDispatcher(db, trigger=trigger)
    dispatcher.add("notify", create_notification, db, recipient_id, **kwargs)
    return dispatcher.run()
