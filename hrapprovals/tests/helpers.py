"""
Shared test helpers
"""
from datetime import timedelta

from hrapprovals.core.security import create_access_token
from hrapprovals.services.balance_service import leave_year_window
from hrapprovals.utils.datetime_utils import today_local

REASON = "Family holiday booked months ago"


def auth_headers(employee) -> dict:
    token = create_access_token({"sub": str(employee.id)})
    return {"Authorization": f"Bearer {token}"}


def future_range(days: int, offset: int = 1):
    """A future [start, end] of `days` days that stays inside one leave year."""
    start = today_local() + timedelta(days=offset)
    _, window_end = leave_year_window(start)
    if start + timedelta(days=days - 1) > window_end:
        start = window_end + timedelta(days=1)
    return start, start + timedelta(days=days - 1)
