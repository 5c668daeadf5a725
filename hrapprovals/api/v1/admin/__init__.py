"""Admin API (ADMIN/SUPER_ADMIN)."""
from fastapi import APIRouter
from hrapprovals.api.v1.admin import absence_detection as admin_absence_detection

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(
    admin_absence_detection.router, prefix="/absence-detection", tags=["admin-absence-detection"]
)
