"""
Tests for daily absence, lateness and overtime detection
"""
from datetime import date, timedelta
from decimal import Decimal

from hrapprovals.models.leave import LeaveRecord, LeaveRecordStatus, LeaveRecordType
from hrapprovals.models.notification import Notification, NotificationPriority, NotificationType
from hrapprovals.models.shift import ShiftAssignment, ShiftStatus, TimeEntry
from hrapprovals.services.absence_detection_service import detect_for_date, run_daily_absence_detection
from hrapprovals.utils.datetime_utils import local_to_utc, yesterday_local

DAY = date(2030, 3, 12)


def _shift(db, employee, day=DAY, start="09:00", end="17:00", status=ShiftStatus.SCHEDULED):
    shift = ShiftAssignment(
        employee_id=employee.id, shift_date=day, start_time=start, end_time=end, status=status
    )
    db.add(shift)
    db.commit()
    return shift


def _clock(db, shift, clock_in_offset_minutes, clock_out_offset_minutes=None):
    """Offsets are minutes from shift start and shift end respectively."""
    clock_in = local_to_utc(shift.shift_date, shift.start_time) + timedelta(minutes=clock_in_offset_minutes)
    clock_out = None
    if clock_out_offset_minutes is not None:
        clock_out = local_to_utc(shift.shift_date, shift.end_time) + timedelta(minutes=clock_out_offset_minutes)
    entry = TimeEntry(
        employee_id=shift.employee_id,
        shift_id=shift.id,
        work_date=shift.shift_date,
        clock_in_at=clock_in,
        clock_out_at=clock_out,
    )
    db.add(entry)
    db.commit()
    return entry


def _admin_notes(db, admin, notification_type):
    return db.query(Notification).filter(
        Notification.recipient_id == admin.id,
        Notification.notification_type == notification_type,
    ).all()


def test_no_clock_in_records_absence(db, org):
    shift = _shift(db, org["alice"])

    summary = detect_for_date(db, DAY)

    assert summary["shifts_checked"] == 1
    assert summary["absences"] == 1
    record = db.query(LeaveRecord).one()
    assert record.record_type == LeaveRecordType.ABSENT
    assert record.status == LeaveRecordStatus.APPROVED
    assert record.days == Decimal("1")
    assert record.auto_detected is True
    assert record.shift_id == shift.id
    assert record.start_date == record.end_date == DAY

    db.refresh(shift)
    assert shift.status == ShiftStatus.MISSED
    assert "no clock-in" in shift.notes

    notes = _admin_notes(db, org["admin"], NotificationType.ABSENCE_DETECTED)
    assert len(notes) == 1
    assert notes[0].priority == NotificationPriority.HIGH


def test_rerun_does_not_duplicate_absence(db, org):
    _shift(db, org["alice"])
    detect_for_date(db, DAY)

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 0
    assert db.query(LeaveRecord).count() == 1
    assert len(_admin_notes(db, org["admin"], NotificationType.ABSENCE_DETECTED)) == 1


def test_clock_in_after_grace_window_is_absence(db, org):
    shift = _shift(db, org["alice"])
    _clock(db, shift, clock_in_offset_minutes=3 * 60 + 1)

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 1
    assert summary["late_arrivals"] == 0


def test_late_arrival_is_annotated_and_alerts_above_threshold(db, org):
    late = _shift(db, org["alice"])
    slightly_late = _shift(db, org["bob"])
    late_entry = _clock(db, late, clock_in_offset_minutes=45)
    _clock(db, slightly_late, clock_in_offset_minutes=10)

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 0
    assert summary["late_arrivals"] == 2
    db.refresh(late)
    db.refresh(late_entry)
    assert late.lateness_minutes == 45
    assert late_entry.lateness_minutes == 45
    assert "Late by 45 minutes" in late.notes
    assert late.status == ShiftStatus.SCHEDULED

    alerts = _admin_notes(db, org["admin"], NotificationType.LATE_ARRIVAL)
    assert len(alerts) == 1
    assert alerts[0].priority == NotificationPriority.MEDIUM
    assert "Alice" in alerts[0].message

    rerun = detect_for_date(db, DAY)
    assert rerun["late_arrivals"] == 0
    assert len(_admin_notes(db, org["admin"], NotificationType.LATE_ARRIVAL)) == 1


def test_on_time_arrival_is_not_late(db, org):
    shift = _shift(db, org["alice"])
    _clock(db, shift, clock_in_offset_minutes=-5, clock_out_offset_minutes=0)

    summary = detect_for_date(db, DAY)

    assert summary["late_arrivals"] == 0
    assert summary["overtime"] == 0
    db.refresh(shift)
    assert shift.lateness_minutes is None


def test_overtime_past_grace_is_annotated(db, org):
    long_day = _shift(db, org["alice"])
    short_stay = _shift(db, org["bob"])
    entry = _clock(db, long_day, clock_in_offset_minutes=0, clock_out_offset_minutes=40)
    _clock(db, short_stay, clock_in_offset_minutes=0, clock_out_offset_minutes=10)

    summary = detect_for_date(db, DAY)

    assert summary["overtime"] == 1
    db.refresh(long_day)
    db.refresh(entry)
    assert long_day.overtime_minutes == 40
    assert entry.overtime_minutes == 40
    assert "Overtime: 40 minutes" in entry.notes
    assert "Overtime: 40 minutes" in long_day.notes


def test_overnight_shift_ends_next_day(db, org):
    shift = _shift(db, org["alice"], start="22:00", end="06:00")
    _clock(db, shift, clock_in_offset_minutes=0)
    entry = db.query(TimeEntry).one()
    entry.clock_out_at = local_to_utc(DAY + timedelta(days=1), "06:30")
    db.commit()

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 0
    assert summary["overtime"] == 1
    db.refresh(shift)
    assert shift.overtime_minutes == 30


def test_employee_on_approved_leave_is_skipped(db, org):
    _shift(db, org["alice"])
    db.add(LeaveRecord(
        employee_id=org["alice"].id,
        record_type=LeaveRecordType.ANNUAL,
        status=LeaveRecordStatus.APPROVED,
        start_date=DAY - timedelta(days=1),
        end_date=DAY + timedelta(days=1),
        days=Decimal("3"),
    ))
    db.commit()

    summary = detect_for_date(db, DAY)

    assert summary["skipped_on_leave"] == 1
    assert summary["absences"] == 0
    assert db.query(LeaveRecord).count() == 1


def test_cancelled_shifts_are_not_checked(db, org):
    _shift(db, org["alice"], status=ShiftStatus.CANCELLED)
    summary = detect_for_date(db, DAY)
    assert summary["shifts_checked"] == 0


def test_one_bad_shift_does_not_stop_the_run(db, org):
    _shift(db, org["alice"], start="9am")
    _shift(db, org["bob"])

    summary = detect_for_date(db, DAY)

    assert summary["shifts_checked"] == 2
    assert summary["errors"] == 1
    assert summary["absences"] == 1
    assert db.query(LeaveRecord).one().employee_id == org["bob"].id


def test_daily_run_targets_yesterday(db, org):
    _shift(db, org["alice"], day=yesterday_local())

    summary = run_daily_absence_detection(db)

    assert summary["date"] == yesterday_local().isoformat()
    assert summary["absences"] == 1


def test_worked_morning_does_not_hide_missed_evening(db, org):
    morning = _shift(db, org["alice"], start="06:00", end="10:00")
    evening = _shift(db, org["alice"], start="18:00", end="22:00")
    _clock(db, morning, 0, 0)

    summary = detect_for_date(db, DAY)

    assert summary["shifts_checked"] == 2
    assert summary["absences"] == 1
    db.refresh(morning)
    db.refresh(evening)
    assert morning.status == ShiftStatus.SCHEDULED
    assert evening.status == ShiftStatus.MISSED
    assert db.query(LeaveRecord).one().shift_id == evening.id
    assert len(_admin_notes(db, org["admin"], NotificationType.ABSENCE_DETECTED)) == 1


def test_unassigned_morning_entry_does_not_count_for_evening(db, org):
    morning = _shift(db, org["alice"], start="06:00", end="10:00")
    evening = _shift(db, org["alice"], start="18:00", end="22:00")
    db.add(TimeEntry(
        employee_id=org["alice"].id,
        work_date=DAY,
        clock_in_at=local_to_utc(DAY, "06:00"),
        clock_out_at=local_to_utc(DAY, "10:00"),
    ))
    db.commit()

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 1
    db.refresh(morning)
    db.refresh(evening)
    assert morning.status == ShiftStatus.SCHEDULED
    assert evening.status == ShiftStatus.MISSED


def test_missed_morning_does_not_excuse_late_evening(db, org):
    morning = _shift(db, org["alice"], start="06:00", end="10:00")
    evening = _shift(db, org["alice"], start="18:00", end="22:00")
    _clock(db, evening, 45)

    summary = detect_for_date(db, DAY)

    assert summary["absences"] == 1
    assert summary["skipped_on_leave"] == 0
    assert summary["late_arrivals"] == 1
    db.refresh(morning)
    db.refresh(evening)
    assert morning.status == ShiftStatus.MISSED
    assert evening.lateness_minutes == 45

    rerun = detect_for_date(db, DAY)
    assert rerun["absences"] == 0
    assert db.query(LeaveRecord).count() == 1
