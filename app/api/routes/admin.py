"""Administrative endpoints for credentialing jobs and reference data."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.services.credentialing.container import CredentialingContainer, get_container
from app.services.queue.tasks import (
    check_expiring_credentials,
    run_monthly_exclusion_check,
    update_oig_database,
)
from app.utils.errors import ValidationError
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

JOBS = {
    "oig-update": update_oig_database,
    "exclusion-check": run_monthly_exclusion_check,
    "expiring-check": check_expiring_credentials,
}


@router.post("/admin/credentialing/jobs/{job}")
async def trigger_job(job: str, refresh_first: bool = False):
    """
    Queue a credentialing job outside its schedule.

    **Jobs:**
    - `oig-update`: download the latest OIG exclusion list
    - `exclusion-check`: re-screen approved providers (`refresh_first=true`
      refreshes the OIG list before screening)
    - `expiring-check`: alert on expiring licenses and DEA registrations

    **Returns:**
    - `task_id` for tracking the queued job
    """
    task = JOBS.get(job)
    if task is None:
        raise ValidationError(
            f"Unknown credentialing job: {job}",
            details={"allowed": sorted(JOBS)},
        )

    if job == "exclusion-check":
        result = task.delay(refresh_first=refresh_first)
    else:
        result = task.delay()

    logger.info("Credentialing job queued", job=job, task_id=result.id)
    return {"job": job, "task_id": result.id, "status": "queued"}


@router.get("/admin/oig/stats")
async def get_oig_stats(
    db: Session = Depends(get_db),
    container: CredentialingContainer = Depends(get_container),
):
    """Size and last import time of the local OIG exclusion list."""
    return container.exclusion_checker(db).get_oig_stats()


@router.get("/admin/credentialing/report")
async def get_credentialing_report(
    db: Session = Depends(get_db),
    container: CredentialingContainer = Depends(get_container),
):
    """Current provider counts per credentialing status and open alerts."""
    return container.credentialing_service(db).weekly_credentialing_report()
