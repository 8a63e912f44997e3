"""
Celery task definitions for scheduled credentialing jobs.

Each job has a synchronous `*_now` function that opens a session, builds the
services, runs the operation and returns its summary. Errors propagate so a
manual caller (admin endpoint, shell) sees the failure. The Celery tasks wrap
those functions and add Sentry reporting.

Tasks (see app/config/celery.py for the beat schedule):
- update_oig_database: download the OIG LEIE snapshot (monthly)
- run_monthly_exclusion_check: re-screen approved providers (monthly)
- check_expiring_credentials: license/DEA expiration alerts (daily)
- expire_lapsed_licenses: deactivate providers with expired licenses (daily)
- send_expiration_reminders: 60/30/10-day reminders (daily)
- weekly_credentialing_report: status counts (weekly)
"""
from typing import Any, Callable, Dict, Optional

from celery import Task

from app.config.celery import celery_app
from app.config.database import SessionLocal
from app.config.sentry import capture_exception, add_breadcrumb, settings
from app.services.credentialing.container import get_container
from app.utils.logger import get_logger

logger = get_logger(__name__)


def run_oig_update_now() -> Dict[str, int]:
    """Refresh the OIG exclusion table now."""
    db = SessionLocal()
    try:
        logger.info("Running OIG database update")
        result = get_container().exclusion_checker(db).update_oig_database()
        logger.info("OIG database updated", **result)
        return result
    finally:
        db.close()


def run_exclusion_check_now(
    refresh_first: bool = False,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Dict[str, Any]:
    """
    Run the exclusion sweep now.

    With refresh_first the OIG table is refreshed to completion before the
    sweep starts reading it.
    """
    refresh = run_oig_update_now() if refresh_first else None

    db = SessionLocal()
    try:
        logger.info("Running monthly exclusion check")
        result = get_container().exclusion_checker(db).run_monthly_exclusion_check(should_stop)
        if refresh is not None:
            result["oig_update"] = refresh
        return result
    finally:
        db.close()


def check_expiring_now() -> Dict[str, int]:
    """Run the expiring-credentials check now."""
    db = SessionLocal()
    try:
        logger.info("Checking expiring credentials")
        return get_container().credentialing_service(db).check_expiring_credentials()
    finally:
        db.close()


def expire_lapsed_licenses_now() -> Dict[str, int]:
    db = SessionLocal()
    try:
        return get_container().credentialing_service(db).expire_lapsed_licenses()
    finally:
        db.close()


def send_expiration_reminders_now() -> Dict[str, int]:
    db = SessionLocal()
    try:
        return get_container().credentialing_service(db).send_expiration_reminders()
    finally:
        db.close()


def weekly_report_now() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return get_container().credentialing_service(db).weekly_credentialing_report()
    finally:
        db.close()


def _report_task_failure(task: Task, name: str, error: Exception) -> None:
    """Log a failed job and send it to Sentry with task context."""
    logger.error("Credentialing job failed", task=name, error=str(error), exc_info=True)

    add_breadcrumb(
        message=f"Credentialing job failed: {name}",
        category="celery_task",
        level="error",
        data={"task": name, "task_id": task.request.id},
    )

    if settings.enable_alerts:
        capture_exception(
            error,
            level="error",
            context={
                "task": {
                    "name": name,
                    "id": task.request.id,
                    "retries": task.request.retries,
                },
            },
            tags={
                "task": name,
                "error_type": type(error).__name__,
            },
        )


@celery_app.task(bind=True, name="update_oig_database")
def update_oig_database(self: Task):
    """Monthly OIG LEIE refresh."""
    try:
        return run_oig_update_now()
    except Exception as e:
        _report_task_failure(self, "update_oig_database", e)
        raise


@celery_app.task(bind=True, name="run_monthly_exclusion_check")
def run_monthly_exclusion_check(self: Task, refresh_first: bool = False):
    """Monthly OIG/SAM re-screen of approved providers."""
    try:
        return run_exclusion_check_now(refresh_first=refresh_first)
    except Exception as e:
        _report_task_failure(self, "run_monthly_exclusion_check", e)
        raise


@celery_app.task(bind=True, name="check_expiring_credentials")
def check_expiring_credentials(self: Task):
    try:
        return check_expiring_now()
    except Exception as e:
        _report_task_failure(self, "check_expiring_credentials", e)
        raise


@celery_app.task(bind=True, name="expire_lapsed_licenses")
def expire_lapsed_licenses(self: Task):
    try:
        return expire_lapsed_licenses_now()
    except Exception as e:
        _report_task_failure(self, "expire_lapsed_licenses", e)
        raise


@celery_app.task(bind=True, name="send_expiration_reminders")
def send_expiration_reminders(self: Task):
    try:
        return send_expiration_reminders_now()
    except Exception as e:
        _report_task_failure(self, "send_expiration_reminders", e)
        raise


@celery_app.task(bind=True, name="weekly_credentialing_report")
def weekly_credentialing_report(self: Task):
    try:
        return weekly_report_now()
    except Exception as e:
        _report_task_failure(self, "weekly_credentialing_report", e)
        raise
