"""
Leave schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from hrapprovals.utils.datetime_utils import iso_local
from hrapprovals.models.leave import LeaveType, LeaveRequestStatus, LeaveRecordType, LeaveRecordStatus
from hrapprovals.schemas.employee import EmployeeBrief


class LeaveRequestCreate(BaseModel):
    """Schema for creating a leave request"""
    leave_type: LeaveType = Field(..., description="Type of leave")
    start_date: date = Field(..., description="First day of leave")
    end_date: date = Field(..., description="Last day of leave (inclusive)")
    reason: str = Field(..., description="Reason for leave, 10 to 500 characters")
    approver_id: Optional[int] = Field(None, description="Nominated approver")
    as_draft: bool = Field(False, description="Save as DRAFT instead of submitting")


class LeaveRequestUpdate(BaseModel):
    """Schema for editing a draft leave request"""
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    approver_id: Optional[int] = None


class ApproveActionRequest(BaseModel):
    """Schema for an approval"""
    comment: Optional[str] = Field(None, description="Optional comment from the approver")


class RejectActionRequest(BaseModel):
    """Schema for a rejection or decline"""
    reason: str = Field(..., description="Reason for rejection")


class LeaveRequestOut(BaseModel):
    """Schema for leave request output"""
    id: int
    employee_id: int
    employee: Optional[EmployeeBrief] = None
    approver_id: Optional[int] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: int
    reason: str
    status: LeaveRequestStatus
    submitted_at: Optional[datetime] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    admin_comment: Optional[str] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer(
        "submitted_at", "approved_at", "rejected_at", "created_at", "updated_at",
        when_used="always",
    )
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt) if dt is not None else None


class LeaveRequestListResponse(BaseModel):
    items: List[LeaveRequestOut]
    total: int


class LeaveRecordOut(BaseModel):
    """Schema for leave ledger records"""
    id: int
    employee_id: int
    record_type: LeaveRecordType
    status: LeaveRecordStatus
    start_date: date
    end_date: date
    days: Decimal
    reason: Optional[str] = None
    leave_request_id: Optional[int] = None
    shift_id: Optional[int] = None
    auto_detected: bool

    model_config = ConfigDict(from_attributes=True)


class ConflictsResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    has_conflicts: bool
    conflicts: List[LeaveRecordOut]
