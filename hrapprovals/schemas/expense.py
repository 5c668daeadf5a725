"""
Expense schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from hrapprovals.utils.datetime_utils import iso_local
from hrapprovals.models.expense import ExpenseStatus


class ExpenseCreate(BaseModel):
    expense_date: date
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("GBP", min_length=3, max_length=3)
    description: Optional[str] = None


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    category: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    description: Optional[str] = None


class ExpenseOut(BaseModel):
    id: int
    employee_id: int
    expense_date: date
    category: str
    description: Optional[str] = None
    amount: Decimal
    currency: str
    status: ExpenseStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    declined_by_id: Optional[int] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None
    paid_by_id: Optional[int] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("approved_at", "declined_at", "paid_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt) if dt is not None else None


class ExpenseListResponse(BaseModel):
    items: List[ExpenseOut]
    total: int
