"""
Celery configuration for scheduled jobs

The broker is Redis (CELERY_BROKER_URL). Beat runs absence detection once a
day at ABSENCE_DETECTION_HOUR in the business timezone.
"""
from celery import Celery
from celery.schedules import crontab

from hrapprovals.core.config import settings
from hrapprovals.core.logging import setup_logging

setup_logging()

celery_app = Celery(
    "hrapprovals",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BROKER_URL,
    include=["hrapprovals.tasks.absence_tasks"],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone=settings.TZ,
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,
    task_soft_time_limit=540,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,  # 24 hours

    beat_schedule={
        "daily-absence-detection": {
            "task": "hrapprovals.tasks.absence_tasks.run_daily_absence_detection_task",
            "schedule": crontab(hour=settings.ABSENCE_DETECTION_HOUR, minute=0),
        },
    },
)
