"""
Notification endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from hrapprovals.core.deps import get_db, get_current_user
from hrapprovals.models.employee import Employee
from hrapprovals.schemas.notification import NotificationOut
from hrapprovals.services.notification_service import list_notifications

router = APIRouter()


@router.get("/me", response_model=List[NotificationOut])
async def my_notifications_endpoint(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return list_notifications(db, current_user.id, unread_only=unread_only)
