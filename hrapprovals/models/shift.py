"""
Shift assignment and time entry models

Shift start/end are "HH:MM" wall-clock strings in the business timezone.
Time entries store clock-in/out in UTC.
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from hrapprovals.db.base import Base


class ShiftStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    ON_BREAK = "ON_BREAK"
    COMPLETED = "COMPLETED"
    MISSED = "MISSED"
    SWAPPED = "SWAPPED"
    CANCELLED = "CANCELLED"


# Shifts that approved leave cancels
CANCELLABLE_SHIFT_STATUSES = (ShiftStatus.SCHEDULED, ShiftStatus.PENDING)

# Shifts the daily detector inspects
DETECTABLE_SHIFT_STATUSES = (
    ShiftStatus.SCHEDULED,
    ShiftStatus.PENDING,
    ShiftStatus.IN_PROGRESS,
    ShiftStatus.ON_BREAK,
    ShiftStatus.COMPLETED,
)

INACTIVE_SHIFT_STATUSES = (ShiftStatus.CANCELLED, ShiftStatus.MISSED, ShiftStatus.SWAPPED)


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    shift_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(SQLEnum(ShiftStatus), nullable=False, default=ShiftStatus.SCHEDULED)
    notes = Column(Text, nullable=True)
    lateness_minutes = Column(Integer, nullable=True)
    overtime_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    employee = relationship("Employee", backref="shift_assignments")
    time_entries = relationship("TimeEntry", back_populates="shift", order_by="TimeEntry.clock_in_at")

    __table_args__ = (
        Index("ix_shift_assignments_employee_date", "employee_id", "shift_date"),
    )


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    shift_id = Column(Integer, ForeignKey("shift_assignments.id"), nullable=True, index=True)
    work_date = Column(Date, nullable=False, index=True)
    clock_in_at = Column(DateTime(timezone=True), nullable=False)
    clock_out_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    lateness_minutes = Column(Integer, nullable=True)
    overtime_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    employee = relationship("Employee", backref="time_entries")
    shift = relationship("ShiftAssignment", back_populates="time_entries")
