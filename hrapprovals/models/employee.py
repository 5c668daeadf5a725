"""
Employee model

Employees form a reporting forest through manager_id; a missing manager
makes the employee a root.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from hrapprovals.db.base import Base


class Role(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    SENIOR_MANAGER = "SENIOR_MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


# Authority level per role; leave approval needs level >= 2
ROLE_LEVELS = {
    Role.EMPLOYEE: 1,
    Role.MANAGER: 2,
    Role.SENIOR_MANAGER: 3,
    Role.HR: 4,
    Role.ADMIN: 5,
    Role.SUPER_ADMIN: 6,
}

ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    emp_code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    role = Column(String, nullable=False, default=Role.EMPLOYEE.value)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    # Relationships
    department = relationship("Department", backref="employees")
    manager = relationship("Employee", remote_side=[id], backref="direct_reports")

    @property
    def role_enum(self) -> Role:
        return Role(self.role)
