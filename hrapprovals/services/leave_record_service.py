"""
Leave record administration
"""
import logging

from sqlalchemy.orm import Session

from hrapprovals.core.errors import AuthorizationError, NotFoundError
from hrapprovals.models.employee import ADMIN_ROLES
from hrapprovals.models.leave import LeaveRecord, LeaveRecordStatus, LeaveRecordType
from hrapprovals.services import balance_service
from hrapprovals.services.audit_service import log_audit
from hrapprovals.services.hierarchy_service import get_active_employee, role_of

logger = logging.getLogger(__name__)


def get_leave_record(db: Session, record_id: int) -> LeaveRecord:
    record = db.query(LeaveRecord).filter(LeaveRecord.id == record_id).first()
    if not record:
        raise NotFoundError(f"Leave record with id {record_id} not found")
    return record


def delete_leave_record(db: Session, record_id: int, actor_id: int) -> None:
    """
    Admin-only removal of a ledger record; an approved annual record
    triggers recalculation of the windows it covered.
    """
    actor = get_active_employee(db, actor_id)
    if role_of(actor) not in ADMIN_ROLES:
        raise AuthorizationError("Only admins can delete leave records")
    record = get_leave_record(db, record_id)

    employee_id = record.employee_id
    start, end = record.start_date, record.end_date
    affects_balance = (
        LeaveRecordType(record.record_type) == LeaveRecordType.ANNUAL
        and LeaveRecordStatus(record.status) == LeaveRecordStatus.APPROVED
    )
    meta = {
        "employee_id": employee_id,
        "record_type": record.record_type,
        "status": record.status,
        "start_date": start,
        "end_date": end,
        "days": record.days,
        "leave_request_id": record.leave_request_id,
    }
    db.delete(record)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="LEAVE_RECORD_DELETE",
        entity_type="leave_records",
        entity_id=record_id,
        meta=meta,
    )
    logger.info("leave record deleted: leave_record_id=%s employee_id=%s", record_id, employee_id)

    if affects_balance:
        balance_service.recalculate_for_range(db, employee_id, start, end)
