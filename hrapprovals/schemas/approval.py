"""
Approval queue and authority schemas
"""
from datetime import date
from typing import List, Optional
from pydantic import BaseModel
from hrapprovals.schemas.leave import LeaveRequestOut
from hrapprovals.schemas.expense import ExpenseOut
from hrapprovals.schemas.overtime import OvertimeOut


class PendingApprovalsResponse(BaseModel):
    leaves: List[LeaveRequestOut]
    expenses: List[ExpenseOut]
    overtime: List[OvertimeOut]


class ApprovalAuthorityOut(BaseModel):
    role: Optional[str]
    authority_level: int
    can_approve_leave: bool
    can_approve_expense: bool
    can_mark_as_paid: bool
    is_manager: bool
    is_senior_manager: bool
    is_hr: bool
    is_admin: bool


class CanApproveResponse(BaseModel):
    approver_id: int
    subject_id: int
    domain: str
    can_approve: bool


class AbsenceDetectionRunRequest(BaseModel):
    target_date: Optional[date] = None


class AbsenceDetectionSummary(BaseModel):
    date: str
    shifts_checked: int
    absences: int
    late_arrivals: int
    overtime: int
    skipped_on_leave: int
    errors: int
