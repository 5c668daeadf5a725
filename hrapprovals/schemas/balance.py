"""
Annual leave balance schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from hrapprovals.utils.datetime_utils import iso_local


class BalanceCreate(BaseModel):
    employee_id: int
    leave_year_start: date
    leave_year_end: Optional[date] = None
    entitlement_days: Optional[Decimal] = Field(None, ge=0)
    carry_over_days: Decimal = Field(Decimal("0"), ge=0)


class AdjustmentCreate(BaseModel):
    days: Decimal = Field(..., description="Signed number of days; negative reduces the balance")
    reason: str = Field(..., min_length=1)


class AdjustmentOut(BaseModel):
    id: int
    days: Decimal
    reason: str
    adjusted_by_id: int
    adjusted_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("adjusted_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: datetime) -> str:
        return iso_local(dt)


class BalanceOut(BaseModel):
    id: int
    employee_id: int
    leave_year_start: date
    leave_year_end: date
    entitlement_days: Decimal
    carry_over_days: Decimal
    used_days: Decimal
    remaining_days: Decimal
    adjustments: List[AdjustmentOut] = []

    model_config = ConfigDict(from_attributes=True)
