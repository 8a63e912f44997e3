"""Celery configuration and the credentialing beat schedule."""
from celery import Celery
from celery.schedules import crontab
import os

# Initialize Sentry early for Celery workers
from app.config.sentry import init_sentry

init_sentry()

from app.utils.logger import get_logger

logger = get_logger(__name__)

# Celery configuration
broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

celery_app = Celery(
    "credentialing",
    broker=broker_url,
    backend=result_backend,
    include=["app.services.queue.tasks"],
)

# Celery settings
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=2 * 60 * 60,  # 2 hours; the monthly sweep is the long one
    task_soft_time_limit=110 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# The OIG refresh (1st) always finishes a day before the sweep that reads it (2nd)
celery_app.conf.beat_schedule = {
    "update-oig-database": {
        "task": "update_oig_database",
        "schedule": crontab(minute=0, hour=2, day_of_month=1),
    },
    "run-monthly-exclusion-check": {
        "task": "run_monthly_exclusion_check",
        "schedule": crontab(minute=0, hour=3, day_of_month=2),
    },
    "check-expiring-credentials": {
        "task": "check_expiring_credentials",
        "schedule": crontab(minute=0, hour=8),
    },
    "expire-lapsed-licenses": {
        "task": "expire_lapsed_licenses",
        "schedule": crontab(minute=0, hour=1),
    },
    "send-expiration-reminders": {
        "task": "send_expiration_reminders",
        "schedule": crontab(minute=0, hour=9),
    },
    "weekly-credentialing-report": {
        "task": "weekly_credentialing_report",
        "schedule": crontab(minute=0, hour=7, day_of_week="mon"),
    },
}
