"""Credentialing workflow endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.models.enums import AlertSeverity
from app.services.credentialing.container import CredentialingContainer, get_container
from app.services.credentialing.workflow import CredentialingService
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


class PhaseNotesRequest(BaseModel):
    """Request model for phase transitions."""

    notes: Optional[str] = None


class ResolveAlertRequest(BaseModel):
    """Request model for resolving an alert."""

    resolved_by: str


def get_credentialing_service(
    db: Session = Depends(get_db),
    container: CredentialingContainer = Depends(get_container),
) -> CredentialingService:
    return container.credentialing_service(db)


@router.post("/credentialing/{provider_id}/initialize")
async def initialize_credentialing(
    provider_id: int,
    service: CredentialingService = Depends(get_credentialing_service),
):
    """
    Start credentialing for a provider.

    Creates the eight pending timeline phases. Calling it again for a provider
    that already has a timeline changes nothing.

    **Returns:**
    - `initialized`: False when the timeline already existed
    """
    initialized = service.initialize_credentialing(provider_id)
    return {"provider_id": provider_id, "initialized": initialized}


@router.post("/credentialing/{provider_id}/verify")
def run_verifications(
    provider_id: int,
    service: CredentialingService = Depends(get_credentialing_service),
):
    """
    Run the automated NPI, DEA, OIG and SAM checks.

    Runs in the threadpool because the registry calls block.

    **Returns:**
    - `{npi, dea, oig, sam}` booleans; a check that did not run is false
    """
    return service.run_automated_verifications(provider_id)


@router.get("/credentialing/{provider_id}/progress")
async def get_progress(
    provider_id: int,
    service: CredentialingService = Depends(get_credentialing_service),
):
    """
    Credentialing progress for the provider dashboard.

    Verification notes are left out; they can carry upstream error text meant
    for credentialing staff.
    """
    return service.get_credentialing_progress(provider_id, include_notes=False)


@router.post("/credentialing/{provider_id}/phases/{phase}/start")
async def start_phase(
    provider_id: int,
    phase: str,
    service: CredentialingService = Depends(get_credentialing_service),
):
    return service.start_credentialing_phase(provider_id, phase)


@router.post("/credentialing/{provider_id}/phases/{phase}/complete")
async def complete_phase(
    provider_id: int,
    phase: str,
    request: Optional[PhaseNotesRequest] = None,
    service: CredentialingService = Depends(get_credentialing_service),
):
    """
    Mark a phase completed.

    Completing the last outstanding phase approves the provider.
    """
    notes = request.notes if request else None
    return service.complete_credentialing_phase(provider_id, phase, notes)


@router.post("/credentialing/{provider_id}/phases/{phase}/fail")
async def fail_phase(
    provider_id: int,
    phase: str,
    request: Optional[PhaseNotesRequest] = None,
    service: CredentialingService = Depends(get_credentialing_service),
):
    notes = request.notes if request else None
    return service.fail_credentialing_phase(provider_id, phase, notes)


@router.get("/credentialing/alerts")
async def list_alerts(
    resolved: Optional[bool] = Query(default=False, description="Filter by resolution state"),
    provider_id: Optional[int] = Query(default=None, description="Filter by provider ID"),
    severity: Optional[AlertSeverity] = Query(default=None, description="Filter by severity"),
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum number of alerts"),
    service: CredentialingService = Depends(get_credentialing_service),
):
    """Credentialing alerts, newest first. Unresolved only by default."""
    alerts = service.list_alerts(
        resolved=resolved,
        provider_id=provider_id,
        severity=severity.value if severity else None,
        limit=limit,
    )
    return {"alerts": alerts, "total": len(alerts)}


@router.post("/credentialing/alerts/{alert_id}/resolve")
async def resolve_alert(
    alert_id: int,
    request: ResolveAlertRequest,
    service: CredentialingService = Depends(get_credentialing_service),
):
    return service.resolve_alert(alert_id, request.resolved_by)
