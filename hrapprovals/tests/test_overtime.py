"""
Tests for overtime claims
"""
from datetime import date
from decimal import Decimal

import pytest

from hrapprovals.core.errors import AuthorizationError, ConflictError, StateError, ValidationError
from hrapprovals.models.notification import Notification, NotificationType
from hrapprovals.models.overtime import OvertimeStatus
from hrapprovals.services import overtime_service


def _claim(db, employee, work_date=date(2030, 9, 2), scheduled="8", worked="10.5"):
    return overtime_service.create_overtime(
        db, employee.id, work_date, Decimal(scheduled), Decimal(worked), reason="Release night"
    )


def test_compute_overtime_hours():
    assert overtime_service.compute_overtime_hours(8, 10) == Decimal("2")
    assert overtime_service.compute_overtime_hours("7.5", "7") == Decimal("0")


def test_create_overtime(db, org):
    overtime = _claim(db, org["alice"])
    assert overtime.status == OvertimeStatus.PENDING
    assert overtime.overtime_hours == Decimal("2.5")


def test_create_overtime_validation(db, org):
    with pytest.raises(ValidationError):
        _claim(db, org["alice"], scheduled="-1", worked="4")
    with pytest.raises(ValidationError):
        _claim(db, org["alice"], scheduled="8", worked="8")


def test_one_claim_per_day(db, org):
    _claim(db, org["alice"])
    with pytest.raises(ConflictError) as exc_info:
        _claim(db, org["alice"], worked="9")
    assert exc_info.value.code == "duplicate_overtime"
    _claim(db, org["bob"])


def test_approve_follows_leave_authority(db, org):
    overtime = _claim(db, org["alice"])
    with pytest.raises(AuthorizationError):
        overtime_service.approve_overtime(db, overtime.id, org["bob"].id)

    approved = overtime_service.approve_overtime(db, overtime.id, org["hr"].id)
    assert approved.status == OvertimeStatus.APPROVED
    assert approved.approved_by_id == org["hr"].id

    with pytest.raises(StateError):
        overtime_service.reject_overtime(db, overtime.id, org["manager"].id)

    note = db.query(Notification).filter(Notification.recipient_id == org["alice"].id).one()
    assert note.notification_type == NotificationType.OVERTIME_APPROVED


def test_reject_overtime(db, org):
    overtime = _claim(db, org["alice"])
    rejected = overtime_service.reject_overtime(db, overtime.id, org["manager"].id, reason="  ")
    assert rejected.status == OvertimeStatus.REJECTED
    assert rejected.rejection_reason is None
