"""
Overtime schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from hrapprovals.utils.datetime_utils import iso_local
from hrapprovals.models.overtime import OvertimeStatus


class OvertimeCreate(BaseModel):
    work_date: date
    scheduled_hours: Decimal = Field(..., description="Hours on the rota")
    worked_hours: Decimal = Field(..., description="Hours actually worked")
    reason: Optional[str] = None


class OvertimeRejectRequest(BaseModel):
    reason: Optional[str] = None


class OvertimeOut(BaseModel):
    id: int
    employee_id: int
    work_date: date
    scheduled_hours: Decimal
    worked_hours: Decimal
    overtime_hours: Decimal
    reason: Optional[str] = None
    status: OvertimeStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("approved_at", "rejected_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt) if dt is not None else None
