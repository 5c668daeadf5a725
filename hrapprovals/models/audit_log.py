"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from hrapprovals.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # NULL for batch jobs
    action = Column(String, nullable=False)  # e.g. "LEAVE_APPROVE", "EXPENSE_MARK_PAID"
    entity_type = Column(String, nullable=False)  # e.g. "leave_requests", "expenses"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
