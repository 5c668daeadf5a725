"""
Database models
"""
from hrapprovals.models.department import Department
from hrapprovals.models.employee import Employee, Role, ROLE_LEVELS, ADMIN_ROLES
from hrapprovals.models.audit_log import AuditLog
from hrapprovals.models.leave import (
    LeaveRequest,
    LeaveRecord,
    LeaveType,
    LeaveRequestStatus,
    LeaveRecordType,
    LeaveRecordStatus,
)
from hrapprovals.models.leave_balance import AnnualLeaveBalance, BalanceAdjustment
from hrapprovals.models.expense import Expense, ExpenseStatus
from hrapprovals.models.overtime import Overtime, OvertimeStatus
from hrapprovals.models.notification import Notification, NotificationPriority, NotificationType
from hrapprovals.models.shift import ShiftAssignment, ShiftStatus, TimeEntry

__all__ = [
    "Department",
    "Employee",
    "Role",
    "ROLE_LEVELS",
    "ADMIN_ROLES",
    "AuditLog",
    "LeaveRequest",
    "LeaveRecord",
    "LeaveType",
    "LeaveRequestStatus",
    "LeaveRecordType",
    "LeaveRecordStatus",
    "AnnualLeaveBalance",
    "BalanceAdjustment",
    "Expense",
    "ExpenseStatus",
    "Overtime",
    "OvertimeStatus",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "ShiftAssignment",
    "ShiftStatus",
    "TimeEntry",
]
