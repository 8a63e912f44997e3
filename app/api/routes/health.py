"""Health check endpoints."""
from datetime import datetime, timedelta
import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config.celery import celery_app
from app.config.database import get_db
from app.services.credentialing.container import CredentialingContainer, get_container
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

API_VERSION = "1.0.0"

# The list is refreshed monthly; allow for one missed run before flagging it
OIG_STALE_AFTER = timedelta(days=45)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Basic health check endpoint.

    Use `/api/v1/health/detailed` for database, worker and OIG list status.
    """
    return HealthResponse(status="healthy", version=API_VERSION)


def _check_database(db: Session) -> dict:
    start = time.time()
    db.execute(text("SELECT 1"))
    return {"status": "healthy", "response_time_ms": round((time.time() - start) * 1000, 2)}


def _check_celery() -> dict:
    active_workers = celery_app.control.inspect(timeout=1.0).active()
    if not active_workers:
        return {"status": "unhealthy", "error": "No active workers found"}
    return {
        "status": "healthy",
        "active_workers": len(active_workers),
        "worker_names": list(active_workers.keys()),
    }


def _check_oig_dataset(stats: dict) -> dict:
    if not stats["total_exclusions"]:
        return {"status": "unhealthy", "error": "OIG exclusion list is empty", **stats}

    last_updated = datetime.fromisoformat(stats["last_updated"])
    if datetime.now() - last_updated > OIG_STALE_AFTER:
        return {"status": "unhealthy", "error": "OIG exclusion list is stale", **stats}
    return {"status": "healthy", **stats}


@router.get("/health/detailed")
async def detailed_health_check(
    db: Session = Depends(get_db),
    container: CredentialingContainer = Depends(get_container),
):
    """
    Detailed health check including all dependencies.

    **Components:**
    - `database`: round-trip time of `SELECT 1`
    - `celery`: active workers running the scheduled credentialing jobs
    - `oig_dataset`: size and age of the local OIG exclusion list; an empty or
      stale list means exclusion checks pass providers they should not
    - `sam`: whether SAM screening is configured (informational)

    Any unhealthy component makes the overall status `degraded`.
    """
    components = {}

    try:
        components["database"] = _check_database(db)
    except Exception as e:
        components["database"] = {"status": "unhealthy", "error": str(e)}
        logger.error("Database health check failed", error=str(e))

    try:
        components["celery"] = _check_celery()
        if components["celery"]["status"] != "healthy":
            logger.warning("Celery health check: No active workers")
    except Exception as e:
        components["celery"] = {"status": "unhealthy", "error": str(e)}
        logger.error("Celery health check failed", error=str(e))

    if components["database"]["status"] == "healthy":
        components["oig_dataset"] = _check_oig_dataset(
            container.exclusion_checker(db).get_oig_stats()
        )
        if components["oig_dataset"]["status"] != "healthy":
            logger.warning("OIG dataset health check failed", error=components["oig_dataset"]["error"])

    components["sam"] = {"status": "enabled" if container.settings.sam_enabled else "disabled"}

    degraded = any(component["status"] == "unhealthy" for component in components.values())
    return {
        "status": "degraded" if degraded else "healthy",
        "version": API_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
        "components": components,
    }
