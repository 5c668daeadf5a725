"""
Balance ledger - annual leave usage per leave year

used_days is a materialized sum: compute_used_days derives it from the
ledger, and recalculate is the only code that writes it.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrapprovals.core.config import settings
from hrapprovals.core.errors import ConflictError, NotFoundError, ValidationError
from hrapprovals.models.leave import LeaveRecord, LeaveRecordStatus, LeaveRecordType
from hrapprovals.models.leave_balance import AnnualLeaveBalance, BalanceAdjustment
from hrapprovals.services.audit_service import log_audit
from hrapprovals.utils.datetime_utils import now_utc, today_local

logger = logging.getLogger(__name__)


def leave_year_window(on_date: date) -> Tuple[date, date]:
    """Leave-year window (inclusive) containing on_date."""
    month, day = settings.LEAVE_YEAR_START_MONTH, settings.LEAVE_YEAR_START_DAY
    start = date(on_date.year, month, day)
    if on_date < start:
        start = date(on_date.year - 1, month, day)
    end = date(start.year + 1, month, day) - timedelta(days=1)
    return start, end


def windows_for_range(start: date, end: date) -> List[Tuple[date, date]]:
    """Every leave-year window that intersects [start, end]."""
    windows = []
    window = leave_year_window(start)
    while window[0] <= end:
        windows.append(window)
        window = leave_year_window(window[1] + timedelta(days=1))
    return windows


def compute_used_days(records: Iterable[LeaveRecord], window_start: date, window_end: date) -> Decimal:
    """
    Sum days of approved annual records intersecting the window.

    Records are counted whole, not clipped to the window.
    """
    total = Decimal("0")
    for record in records:
        if LeaveRecordType(record.record_type) != LeaveRecordType.ANNUAL:
            continue
        if LeaveRecordStatus(record.status) != LeaveRecordStatus.APPROVED:
            continue
        if record.start_date <= window_end and record.end_date >= window_start:
            total += Decimal(record.days)
    return total


def get_balance(db: Session, employee_id: int, year_start: date) -> Optional[AnnualLeaveBalance]:
    return db.query(AnnualLeaveBalance).filter(
        AnnualLeaveBalance.employee_id == employee_id,
        AnnualLeaveBalance.leave_year_start == year_start,
    ).first()


def get_or_create_balance(db: Session, employee_id: int, year_start: date, year_end: date) -> AnnualLeaveBalance:
    """Balance row for the window, created with the default entitlement if missing."""
    balance = get_balance(db, employee_id, year_start)
    if balance is None:
        balance = AnnualLeaveBalance(
            employee_id=employee_id,
            leave_year_start=year_start,
            leave_year_end=year_end,
            entitlement_days=Decimal(str(settings.DEFAULT_ENTITLEMENT_DAYS)),
            carry_over_days=Decimal("0"),
            used_days=Decimal("0"),
        )
        db.add(balance)
        db.flush()
        logger.info(
            "Created annual leave balance: employee_id=%s window=%s..%s", employee_id, year_start, year_end
        )
    return balance


def recalculate(db: Session, employee_id: int, year_start: date, year_end: date) -> AnnualLeaveBalance:
    """
    Recompute and store used_days for one employee and leave-year window.
    """
    balance = get_or_create_balance(db, employee_id, year_start, year_end)
    records = db.query(LeaveRecord).filter(
        LeaveRecord.employee_id == employee_id,
        LeaveRecord.record_type == LeaveRecordType.ANNUAL,
        LeaveRecord.status == LeaveRecordStatus.APPROVED,
        LeaveRecord.start_date <= balance.leave_year_end,
        LeaveRecord.end_date >= balance.leave_year_start,
    ).all()
    used = compute_used_days(records, balance.leave_year_start, balance.leave_year_end)
    before = balance.used_days
    balance.used_days = used
    db.commit()
    db.refresh(balance)
    logger.info(
        "Recalculated annual leave: employee_id=%s window=%s..%s used_before=%s used_after=%s",
        employee_id, year_start, year_end, before, used,
    )
    return balance


def balances_intersecting(db: Session, employee_id: int, start: date, end: date) -> List[AnnualLeaveBalance]:
    """Existing balance rows whose window intersects [start, end]."""
    return db.query(AnnualLeaveBalance).filter(
        AnnualLeaveBalance.employee_id == employee_id,
        AnnualLeaveBalance.leave_year_start <= end,
        AnnualLeaveBalance.leave_year_end >= start,
    ).order_by(AnnualLeaveBalance.leave_year_start).all()


def _uncovered(lo: date, hi: date, windows: List[Tuple[date, date]]) -> List[Tuple[date, date]]:
    """Sub-ranges of [lo, hi] that no window covers."""
    gaps = []
    cursor = lo
    for s, e in sorted(windows):
        if e < cursor or s > hi:
            continue
        if s > cursor:
            gaps.append((cursor, s - timedelta(days=1)))
        cursor = max(cursor, e + timedelta(days=1))
        if cursor > hi:
            break
    if cursor <= hi:
        gaps.append((cursor, hi))
    return gaps


def recalculate_for_range(db: Session, employee_id: int, start: date, end: date) -> List[AnnualLeaveBalance]:
    """
    Recalculate every balance row a leave range touches.

    Existing rows are recalculated over their own windows. Days no row
    covers fall back to the configured leave-year window, trimmed so it
    does not overlap an existing row.
    """
    windows = [(b.leave_year_start, b.leave_year_end) for b in balances_intersecting(db, employee_id, start, end)]
    for ws, we in windows_for_range(start, end):
        neighbours = [(b.leave_year_start, b.leave_year_end) for b in balances_intersecting(db, employee_id, ws, we)]
        for gap_lo, gap_hi in _uncovered(max(start, ws), min(end, we), neighbours):
            fallback_start = max([ws] + [e + timedelta(days=1) for s, e in neighbours if e < gap_lo])
            fallback_end = min([we] + [s - timedelta(days=1) for s, e in neighbours if s > gap_hi])
            windows.append((fallback_start, fallback_end))
    return [recalculate(db, employee_id, ws, we) for ws, we in sorted(set(windows))]


def get_current_balance(db: Session, employee_id: int, on_date: Optional[date] = None) -> Optional[AnnualLeaveBalance]:
    """Balance row whose window contains on_date (default today)."""
    on_date = on_date or today_local()
    return db.query(AnnualLeaveBalance).filter(
        AnnualLeaveBalance.employee_id == employee_id,
        AnnualLeaveBalance.leave_year_start <= on_date,
        AnnualLeaveBalance.leave_year_end >= on_date,
    ).first()


def create_balance(
    db: Session,
    employee_id: int,
    leave_year_start: date,
    actor_id: int,
    entitlement_days: Optional[Decimal] = None,
    carry_over_days: Decimal = Decimal("0"),
    leave_year_end: Optional[date] = None,
) -> AnnualLeaveBalance:
    """
    Open a balance row for a leave year; one row per employee and window.

    Raises:
        ValidationError: window end before start or negative amounts
        ConflictError: a row already covers part of the window
    """
    if leave_year_end is None:
        leave_year_end = date(leave_year_start.year + 1, leave_year_start.month, leave_year_start.day) - timedelta(days=1)
    if leave_year_end < leave_year_start:
        raise ValidationError("Leave year end must be after its start")
    if entitlement_days is None:
        entitlement_days = Decimal(str(settings.DEFAULT_ENTITLEMENT_DAYS))
    if Decimal(entitlement_days) < 0 or Decimal(carry_over_days) < 0:
        raise ValidationError("Entitlement and carry-over cannot be negative")
    if balances_intersecting(db, employee_id, leave_year_start, leave_year_end):
        raise ConflictError("A balance already exists for this leave year", code="duplicate_balance")

    balance = AnnualLeaveBalance(
        employee_id=employee_id,
        leave_year_start=leave_year_start,
        leave_year_end=leave_year_end,
        entitlement_days=Decimal(entitlement_days),
        carry_over_days=Decimal(carry_over_days),
        used_days=Decimal("0"),
    )
    db.add(balance)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A balance already exists for this leave year", code="duplicate_balance")

    log_audit(
        db=db,
        actor_id=actor_id,
        action="BALANCE_CREATE",
        entity_type="annual_leave_balances",
        entity_id=balance.id,
        meta={
            "employee_id": employee_id,
            "leave_year_start": leave_year_start,
            "leave_year_end": leave_year_end,
            "entitlement_days": entitlement_days,
            "carry_over_days": carry_over_days,
        },
    )
    return recalculate(db, employee_id, leave_year_start, leave_year_end)


def add_adjustment(db: Session, balance_id: int, days: Decimal, reason: str, actor_id: int) -> AnnualLeaveBalance:
    """
    Append a signed adjustment; existing adjustments are never edited.
    """
    balance = db.query(AnnualLeaveBalance).filter(AnnualLeaveBalance.id == balance_id).first()
    if not balance:
        raise NotFoundError(f"Balance with id {balance_id} not found")
    if not reason or not reason.strip():
        raise ValidationError("An adjustment needs a reason")
    days = Decimal(days)
    if days == 0:
        raise ValidationError("Adjustment days must be non-zero")

    adjustment = BalanceAdjustment(
        balance_id=balance.id,
        days=days,
        reason=reason.strip(),
        adjusted_by_id=actor_id,
        adjusted_at=now_utc(),
    )
    db.add(adjustment)
    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="BALANCE_ADJUST",
        entity_type="annual_leave_balances",
        entity_id=balance.id,
        meta={"employee_id": balance.employee_id, "days": days, "reason": reason.strip()},
    )
    db.refresh(balance)
    logger.info("Balance adjusted: balance_id=%s days=%s actor_id=%s", balance.id, days, actor_id)
    return balance
