"""
Leave models

LeaveRequest is the workflow object an employee submits; LeaveRecord is the
canonical absence ledger that balances and overlap checks read.
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Numeric,
    Enum as SQLEnum,
    Boolean,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from hrapprovals.db.base import Base


class LeaveType(str, enum.Enum):
    SICK = "SICK"
    CASUAL = "CASUAL"
    PAID = "PAID"
    UNPAID = "UNPAID"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    BEREAVEMENT = "BEREAVEMENT"
    OTHER = "OTHER"


class LeaveRequestStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveRecordType(str, enum.Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    UNPAID = "UNPAID"
    ABSENT = "ABSENT"


class LeaveRecordStatus(str, enum.Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"


# Request type -> ledger type written on approval; anything not listed is annual
RECORD_TYPE_FOR_LEAVE_TYPE = {
    LeaveType.SICK: LeaveRecordType.SICK,
    LeaveType.UNPAID: LeaveRecordType.UNPAID,
}

# Ledger statuses that block an overlapping range
BLOCKING_RECORD_STATUSES = (LeaveRecordStatus.PENDING, LeaveRecordStatus.APPROVED)


def record_type_for(leave_type: LeaveType) -> LeaveRecordType:
    return RECORD_TYPE_FOR_LEAVE_TYPE.get(LeaveType(leave_type), LeaveRecordType.ANNUAL)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)  # nominated approver
    leave_type = Column(SQLEnum(LeaveType), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    number_of_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(SQLEnum(LeaveRequestStatus), nullable=False, server_default=text("'PENDING'"))
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    admin_comment = Column(Text, nullable=True)
    rejected_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id])
    approver = relationship("Employee", foreign_keys=[approver_id])
    approved_by = relationship("Employee", foreign_keys=[approved_by_id])
    rejected_by = relationship("Employee", foreign_keys=[rejected_by_id])
    leave_record = relationship("LeaveRecord", back_populates="leave_request", uselist=False)

    __table_args__ = (
        Index("ix_leave_requests_employee_dates", "employee_id", "start_date", "end_date"),
        CheckConstraint("start_date <= end_date", name="check_leave_request_start_le_end"),
    )


class LeaveRecord(Base):
    __tablename__ = "leave_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    record_type = Column(SQLEnum(LeaveRecordType), nullable=False)
    status = Column(SQLEnum(LeaveRecordStatus), nullable=False, default=LeaveRecordStatus.APPROVED)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Numeric(5, 2), nullable=False)
    reason = Column(Text, nullable=True)
    # One approved request yields exactly one record
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=True, unique=True)
    shift_id = Column(Integer, ForeignKey("shift_assignments.id"), nullable=True, index=True)
    auto_detected = Column(Boolean, nullable=False, default=False)
    created_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)

    employee = relationship("Employee", foreign_keys=[employee_id])
    leave_request = relationship("LeaveRequest", back_populates="leave_record")

    __table_args__ = (
        Index("ix_leave_records_employee_dates", "employee_id", "start_date", "end_date"),
        CheckConstraint("start_date <= end_date", name="check_leave_record_start_le_end"),
    )
