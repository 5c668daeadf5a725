"""
Concurrent approval of the same request: exactly one approver wins
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hrapprovals.core.errors import StateError
from hrapprovals.db.base import Base
from hrapprovals.models.employee import Employee, Role
from hrapprovals.models.leave import LeaveRecord, LeaveRequest, LeaveRequestStatus, LeaveType
from hrapprovals.services import leave_request_service as leaves
from hrapprovals.services.transitions import compare_and_set_status
from hrapprovals.tests.helpers import REASON, future_range


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    first, second = Session(), Session()
    try:
        yield first, second
    finally:
        first.close()
        second.close()
        engine.dispose()


def _seed(db):
    senior = Employee(emp_code="S1", name="Senior", role=Role.SENIOR_MANAGER.value)
    db.add(senior)
    db.flush()
    manager = Employee(emp_code="M1", name="Manager", role=Role.MANAGER.value, manager_id=senior.id)
    db.add(manager)
    db.flush()
    subject = Employee(emp_code="E1", name="Subject", role=Role.EMPLOYEE.value, manager_id=manager.id)
    db.add(subject)
    db.commit()
    start, end = future_range(2, offset=10)
    request = leaves.submit_leave_request(db, subject.id, None, LeaveType.PAID, start, end, REASON)
    return senior.id, manager.id, request.id


def test_second_session_loses_the_race(file_sessions):
    first, second = file_sessions
    senior_id, manager_id, request_id = _seed(first)

    # Both approvers load the request while it is still pending
    assert leaves.get_leave_request(first, request_id).status == LeaveRequestStatus.PENDING
    assert leaves.get_leave_request(second, request_id).status == LeaveRequestStatus.PENDING

    leaves.approve_leave_request(first, request_id, manager_id)

    with pytest.raises(StateError, match="already approved"):
        leaves.approve_leave_request(second, request_id, senior_id)

    assert second.query(LeaveRecord).filter(LeaveRecord.leave_request_id == request_id).count() == 1
    approved = second.query(LeaveRequest).filter(LeaveRequest.id == request_id).one()
    assert approved.approved_by_id == manager_id


def test_compare_and_set_status_reports_lost_update(file_sessions):
    first, second = file_sessions
    _, manager_id, request_id = _seed(first)

    assert compare_and_set_status(
        first, LeaveRequest, request_id, LeaveRequestStatus.PENDING, LeaveRequestStatus.REJECTED,
        {"rejected_by_id": manager_id, "rejection_reason": "No cover"},
    )
    first.commit()

    assert not compare_and_set_status(
        second, LeaveRequest, request_id, LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED,
    )
    second.rollback()
