"""
Main API router
"""
from fastapi import APIRouter

from hrapprovals.api.v1 import (
    health,
    version,
    leave_requests,
    leave_records,
    balances,
    expenses,
    overtime,
    approvals,
    notifications,
)
from hrapprovals.api.v1.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(leave_requests.router, prefix="/leave-requests", tags=["leave-requests"])
api_router.include_router(leave_records.router, prefix="/leave-records", tags=["leave-records"])
api_router.include_router(balances.router, prefix="/balances", tags=["balances"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(overtime.router, prefix="/overtime", tags=["overtime"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["approvals"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin_router)
