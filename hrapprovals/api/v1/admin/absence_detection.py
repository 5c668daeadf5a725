"""
Admin: on-demand absence detection
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, require_roles
from hrapprovals.models.employee import Employee, Role
from hrapprovals.schemas.approval import AbsenceDetectionRunRequest, AbsenceDetectionSummary
from hrapprovals.services.absence_detection_service import detect_for_date
from hrapprovals.utils.datetime_utils import yesterday_local

router = APIRouter()


@router.post("/run", response_model=AbsenceDetectionSummary)
async def run_absence_detection_endpoint(
    payload: Optional[AbsenceDetectionRunRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    """
    Run absence, lateness and overtime detection for one date.

    Defaults to yesterday in the business timezone, like the scheduled job.
    Re-running a date does not create duplicate absence records.
    """
    return detect_for_date(db, (payload.target_date if payload else None) or yesterday_local())
