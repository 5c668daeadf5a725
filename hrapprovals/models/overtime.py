"""
Overtime model
"""
from sqlalchemy import (
    Column, Integer, Date, DateTime, ForeignKey, Text, Numeric, Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from hrapprovals.db.base import Base


class OvertimeStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Overtime(Base):
    __tablename__ = "overtime"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    work_date = Column(Date, nullable=False)
    scheduled_hours = Column(Numeric(5, 2), nullable=False)
    worked_hours = Column(Numeric(5, 2), nullable=False)
    overtime_hours = Column(Numeric(5, 2), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(SQLEnum(OvertimeStatus), nullable=False, server_default=text("'PENDING'"))
    approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    employee = relationship("Employee", foreign_keys=[employee_id])

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_overtime_employee_date"),
    )
