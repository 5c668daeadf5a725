"""
Recalculate annual leave used_days from the leave ledger.

Use after a bulk import or a manual edit of leave_records, when the cached
used_days may have drifted from the approved annual records.

Usage (with .env loaded and the package installed):

    python scripts/recalculate_leave_balances.py
    python scripts/recalculate_leave_balances.py --date 2026-03-01 --employee-id 42

Safe to run multiple times (idempotent).
"""
import argparse
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from hrapprovals.core.logging import setup_logging
from hrapprovals.db.session import SessionLocal
from hrapprovals.models.employee import Employee
from hrapprovals.services.balance_service import leave_year_window, recalculate
from hrapprovals.utils.datetime_utils import today_local

logger = logging.getLogger("hrapprovals.scripts.recalculate_leave_balances")


def recalculate_all(db: Session, on_date: date, employee_id: Optional[int] = None) -> int:
    """Recalculate the leave-year window containing on_date for every active employee."""
    year_start, year_end = leave_year_window(on_date)
    query = db.query(Employee.id).filter(Employee.active == True)  # noqa: E712
    if employee_id is not None:
        query = query.filter(Employee.id == employee_id)
    employee_ids = [row[0] for row in query.order_by(Employee.id).all()]

    for emp_id in employee_ids:
        balance = recalculate(db, emp_id, year_start, year_end)
        logger.info(
            "employee_id=%s window=%s..%s used=%s remaining=%s",
            emp_id, year_start, year_end, balance.used_days, balance.remaining_days,
        )
    return len(employee_ids)


def main() -> None:
    parser = argparse.ArgumentParser(description="Recalculate annual leave balances")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Day inside the leave year (default today)")
    parser.add_argument("--employee-id", type=int, default=None, help="Only this employee")
    args = parser.parse_args()

    setup_logging()
    on_date = args.date or today_local()
    db = SessionLocal()
    try:
        count = recalculate_all(db, on_date, args.employee_id)
    finally:
        db.close()
    print(f"Recalculated {count} balance(s) for the leave year containing {on_date.isoformat()}")


if __name__ == "__main__":
    main()
