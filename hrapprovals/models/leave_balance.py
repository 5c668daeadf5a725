"""
Annual leave balance models

remaining = entitlement + carry_over + sum(adjustments) - used.
used_days is a cache written only by balance_service.recalculate.
"""
from decimal import Decimal
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
from hrapprovals.db.base import Base


class AnnualLeaveBalance(Base):
    __tablename__ = "annual_leave_balances"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_year_start = Column(Date, nullable=False)
    leave_year_end = Column(Date, nullable=False)
    entitlement_days = Column(Numeric(5, 2), nullable=False, default=20)
    carry_over_days = Column(Numeric(5, 2), nullable=False, default=0)
    used_days = Column(Numeric(5, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    employee = relationship("Employee", backref="annual_leave_balances")
    adjustments = relationship(
        "BalanceAdjustment",
        back_populates="balance",
        order_by="BalanceAdjustment.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "leave_year_start", name="uq_annual_leave_balances_employee_year"),
    )

    @property
    def adjustment_total(self) -> Decimal:
        return sum((Decimal(a.days) for a in self.adjustments), Decimal("0"))

    @property
    def remaining_days(self) -> Decimal:
        return (
            Decimal(self.entitlement_days or 0)
            + Decimal(self.carry_over_days or 0)
            + self.adjustment_total
            - Decimal(self.used_days or 0)
        )


class BalanceAdjustment(Base):
    """Signed, append-only correction to a balance row"""
    __tablename__ = "balance_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    balance_id = Column(Integer, ForeignKey("annual_leave_balances.id"), nullable=False, index=True)
    days = Column(Numeric(5, 2), nullable=False)
    reason = Column(Text, nullable=False)
    adjusted_by_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    adjusted_at = Column(DateTime(timezone=True), nullable=False)

    balance = relationship("AnnualLeaveBalance", back_populates="adjustments")
    adjusted_by = relationship("Employee", foreign_keys=[adjusted_by_id])
