"""
Absence, lateness and overtime detection over a day's shifts

For each shift on the target date:
- approved leave covering the date: skip (this includes an absence recorded
  for the same shift by an earlier run, so re-running a day creates nothing
  new; absences generated for other shifts that day do not count)
- time entries: those clocked against the shift, or unassigned entries that
  day clocked in between the previous shift's end and the next shift's start
- no clock-in by shift start + ABSENCE_GRACE_HOURS: record an ABSENT leave
  record, mark the shift MISSED, notify admins
- clock-in after start but within the grace window: annotate lateness,
  notify admins above LATENESS_ALERT_MINUTES
- clock-out more than OVERTIME_GRACE_MINUTES after shift end: annotate
  overtime minutes on the entry and the shift (informational, no overtime
  claim is created)
A failure on one shift is logged and the run moves on.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from hrapprovals.core.config import settings
from hrapprovals.models.employee import Employee
from hrapprovals.models.leave import LeaveRecord, LeaveRecordStatus, LeaveRecordType
from hrapprovals.models.notification import NotificationPriority, NotificationType
from hrapprovals.models.shift import (
    ShiftAssignment,
    ShiftStatus,
    TimeEntry,
    DETECTABLE_SHIFT_STATUSES,
)
from hrapprovals.services.audit_service import log_audit
from hrapprovals.services.notification_service import notify_admins
from hrapprovals.services.shift_service import append_note
from hrapprovals.utils.datetime_utils import ensure_utc, local_to_utc, minutes_between, yesterday_local

logger = logging.getLogger(__name__)


def _new_summary(target_date: date) -> Dict:
    return {
        "date": target_date.isoformat(),
        "shifts_checked": 0,
        "absences": 0,
        "late_arrivals": 0,
        "overtime": 0,
        "skipped_on_leave": 0,
        "errors": 0,
    }


def _shift_window_utc(shift: ShiftAssignment):
    start = local_to_utc(shift.shift_date, shift.start_time)
    end = local_to_utc(shift.shift_date, shift.end_time)
    if end <= start:
        # Overnight shift ends the next day
        end = local_to_utc(shift.shift_date + timedelta(days=1), shift.end_time)
    return start, end


def _approved_leave_for(db: Session, shift: ShiftAssignment) -> Optional[LeaveRecord]:
    # Records generated for another shift that day do not excuse this one
    return db.query(LeaveRecord).filter(
        LeaveRecord.employee_id == shift.employee_id,
        LeaveRecord.status == LeaveRecordStatus.APPROVED,
        LeaveRecord.start_date <= shift.shift_date,
        LeaveRecord.end_date >= shift.shift_date,
        or_(LeaveRecord.shift_id.is_(None), LeaveRecord.shift_id == shift.id),
    ).first()


def _neighbour_bounds(db: Session, shift: ShiftAssignment, start_utc):
    """End of the previous shift and start of the next one that day, in UTC."""
    siblings = db.query(ShiftAssignment).filter(
        ShiftAssignment.employee_id == shift.employee_id,
        ShiftAssignment.shift_date == shift.shift_date,
        ShiftAssignment.id != shift.id,
        ShiftAssignment.status.notin_((ShiftStatus.CANCELLED, ShiftStatus.SWAPPED)),
    ).all()
    previous_end = None
    next_start = None
    for sibling in siblings:
        try:
            sibling_start, sibling_end = _shift_window_utc(sibling)
        except ValueError:
            # Reported when the sibling itself is processed
            logger.warning("Ignoring unparseable neighbour shift: shift_id=%s", sibling.id)
            continue
        if sibling_start < start_utc:
            previous_end = sibling_end if previous_end is None else max(previous_end, sibling_end)
        elif sibling_start > start_utc:
            next_start = sibling_start if next_start is None else min(next_start, sibling_start)
    return previous_end, next_start


def _entries_for_shift(db: Session, shift: ShiftAssignment, start_utc) -> List[TimeEntry]:
    """
    Entries clocked against the shift, plus unassigned entries that day
    clocked in between the previous shift's end and the next shift's start.
    """
    previous_end, next_start = _neighbour_bounds(db, shift, start_utc)
    candidates = db.query(TimeEntry).filter(
        TimeEntry.employee_id == shift.employee_id,
        or_(
            TimeEntry.shift_id == shift.id,
            and_(TimeEntry.shift_id.is_(None), TimeEntry.work_date == shift.shift_date),
        ),
    ).order_by(TimeEntry.clock_in_at).all()

    entries = []
    for entry in candidates:
        if entry.shift_id is None:
            clock_in = ensure_utc(entry.clock_in_at)
            if previous_end is not None and clock_in <= previous_end:
                continue
            if next_start is not None and clock_in >= next_start:
                continue
        entries.append(entry)
    return entries


def _employee_name(db: Session, employee_id: int) -> str:
    name = db.query(Employee.name).filter(Employee.id == employee_id).scalar()
    return name or f"Employee {employee_id}"


def _record_absence(db: Session, shift: ShiftAssignment) -> LeaveRecord:
    label = f"{shift.start_time}-{shift.end_time}"
    record = LeaveRecord(
        employee_id=shift.employee_id,
        record_type=LeaveRecordType.ABSENT,
        status=LeaveRecordStatus.APPROVED,
        start_date=shift.shift_date,
        end_date=shift.shift_date,
        days=Decimal("1"),
        reason=f"Auto-detected absence: no clock-in for shift {label}",
        shift_id=shift.id,
        auto_detected=True,
    )
    db.add(record)
    shift.status = ShiftStatus.MISSED
    shift.notes = append_note(shift.notes, f"Marked missed: no clock-in within {settings.ABSENCE_GRACE_HOURS}h of start")
    db.flush()
    log_audit(
        db=db,
        actor_id=None,
        action="ABSENCE_DETECTED",
        entity_type="leave_records",
        entity_id=record.id,
        meta={"employee_id": shift.employee_id, "shift_id": shift.id, "date": shift.shift_date},
    )
    logger.info(
        "absence detected: employee_id=%s shift_id=%s date=%s leave_record_id=%s",
        shift.employee_id, shift.id, shift.shift_date, record.id,
    )
    return record


def _process_shift(db: Session, shift: ShiftAssignment, summary: Dict) -> None:
    employee_id = shift.employee_id
    shift_date = shift.shift_date

    if _approved_leave_for(db, shift) is not None:
        summary["skipped_on_leave"] += 1
        return

    start_utc, end_utc = _shift_window_utc(shift)
    deadline = start_utc + timedelta(hours=settings.ABSENCE_GRACE_HOURS)

    entries = _entries_for_shift(db, shift, start_utc)
    first = entries[0] if entries else None

    if first is None or ensure_utc(first.clock_in_at) > deadline:
        _record_absence(db, shift)
        name = _employee_name(db, employee_id)
        summary["absences"] += 1
        notify_admins(
            db,
            notification_type=NotificationType.ABSENCE_DETECTED,
            title="Absence detected",
            message=f"{name} did not clock in for their {shift.start_time} shift on {shift_date.isoformat()}.",
            priority=NotificationPriority.HIGH,
            related_entity_type="shift_assignments",
            related_entity_id=shift.id,
            meta={"employee_id": employee_id},
        )
        return

    late_minutes = minutes_between(start_utc, first.clock_in_at)
    if late_minutes > 0 and first.lateness_minutes is None:
        first.lateness_minutes = late_minutes
        shift.lateness_minutes = late_minutes
        shift.notes = append_note(shift.notes, f"Late by {late_minutes} minutes")
        db.commit()
        summary["late_arrivals"] += 1
        logger.info("late arrival: employee_id=%s shift_id=%s minutes=%s", employee_id, shift.id, late_minutes)
        if late_minutes > settings.LATENESS_ALERT_MINUTES:
            notify_admins(
                db,
                notification_type=NotificationType.LATE_ARRIVAL,
                title="Late arrival",
                message=f"{_employee_name(db, employee_id)} was {late_minutes} minutes late on {shift_date.isoformat()}.",
                priority=NotificationPriority.MEDIUM,
                related_entity_type="shift_assignments",
                related_entity_id=shift.id,
                meta={"employee_id": employee_id, "late_minutes": late_minutes},
            )

    clocked_out = [e for e in entries if e.clock_out_at is not None]
    if not clocked_out:
        return
    last = max(clocked_out, key=lambda e: ensure_utc(e.clock_out_at))
    overtime_minutes = minutes_between(end_utc, last.clock_out_at)
    if overtime_minutes > settings.OVERTIME_GRACE_MINUTES and last.overtime_minutes is None:
        last.overtime_minutes = overtime_minutes
        shift.overtime_minutes = overtime_minutes
        last.notes = append_note(last.notes, f"Overtime: {overtime_minutes} minutes past shift end")
        shift.notes = append_note(shift.notes, f"Overtime: {overtime_minutes} minutes past shift end")
        db.commit()
        summary["overtime"] += 1
        logger.info("overtime detected: employee_id=%s shift_id=%s minutes=%s", employee_id, shift.id, overtime_minutes)


def detect_for_date(db: Session, target_date: date) -> Dict:
    """
    Run detection over every active shift on target_date.

    Returns:
        Summary counts for the run
    """
    summary = _new_summary(target_date)
    shift_ids = [
        row[0] for row in db.query(ShiftAssignment.id).filter(
            ShiftAssignment.shift_date == target_date,
            ShiftAssignment.status.in_(DETECTABLE_SHIFT_STATUSES),
        ).order_by(ShiftAssignment.id).all()
    ]

    for shift_id in shift_ids:
        summary["shifts_checked"] += 1
        try:
            shift = db.query(ShiftAssignment).filter(ShiftAssignment.id == shift_id).first()
            if shift is None:
                continue
            _process_shift(db, shift, summary)
        except Exception:
            logger.exception("Absence detection failed: shift_id=%s date=%s", shift_id, target_date)
            db.rollback()
            summary["errors"] += 1

    logger.info(
        "Absence detection complete: date=%s checked=%s absences=%s late=%s overtime=%s on_leave=%s errors=%s",
        summary["date"], summary["shifts_checked"], summary["absences"], summary["late_arrivals"],
        summary["overtime"], summary["skipped_on_leave"], summary["errors"],
    )
    return summary


def run_daily_absence_detection(db: Optional[Session] = None) -> Dict:
    """
    Detect absences, lateness and overtime for yesterday in the business timezone.

    Opens its own session when none is given.
    """
    target_date = yesterday_local()
    if db is not None:
        return detect_for_date(db, target_date)

    from hrapprovals.db.session import SessionLocal

    session = SessionLocal()
    try:
        return detect_for_date(session, target_date)
    finally:
        session.close()
