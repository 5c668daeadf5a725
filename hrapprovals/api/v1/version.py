"""
Version and metadata endpoint
"""
from fastapi import APIRouter
from hrapprovals.core.config import settings

router = APIRouter()


@router.get("/version")
async def get_version():
    """
    Get application version and metadata

    Returns:
        Service name, version, environment and business timezone
    """
    return {
        "service": "hrapprovals",
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
        "timezone": settings.TZ,
    }
