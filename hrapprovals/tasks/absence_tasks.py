"""
Scheduled absence detection
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from celery import shared_task

from hrapprovals.db.session import SessionLocal
from hrapprovals.services.absence_detection_service import detect_for_date, run_daily_absence_detection

logger = logging.getLogger(__name__)


@shared_task(name="hrapprovals.tasks.absence_tasks.run_daily_absence_detection_task")
def run_daily_absence_detection_task(target_date: Optional[str] = None) -> Dict[str, Any]:
    """
    Detect absences for yesterday, or for target_date (YYYY-MM-DD) when a
    past day has to be re-run by hand.
    """
    if target_date is None:
        return run_daily_absence_detection()

    logger.info("Absence detection requested for %s", target_date)
    db = SessionLocal()
    try:
        return detect_for_date(db, date.fromisoformat(target_date))
    finally:
        db.close()
