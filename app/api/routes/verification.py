"""Stand-alone NPI and DEA verification endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.services.credentialing.container import CredentialingContainer, get_container
from app.services.credentialing.dea import is_dea_required, validate_dea_number
from app.services.credentialing.npi import validate_npi_checksum
from app.utils.errors import ValidationError
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


class DEAValidationRequest(BaseModel):
    """Request model for DEA validation."""

    dea_number: str
    last_name: Optional[str] = None
    license_type: Optional[str] = None


@router.get("/verification/npi/search")
def search_npi(
    first_name: Optional[str] = Query(default=None),
    last_name: Optional[str] = Query(default=None),
    organization_name: Optional[str] = Query(default=None),
    city: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None, min_length=2, max_length=2),
    postal_code: Optional[str] = Query(default=None),
    taxonomy_description: Optional[str] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=200, description="Maximum number of results"),
    container: CredentialingContainer = Depends(get_container),
):
    """
    Search the NPI Registry for providers who do not know their NPI.

    At least one search criterion is required.
    """
    criteria = {
        "first_name": first_name,
        "last_name": last_name,
        "organization_name": organization_name,
        "city": city,
        "state": state,
        "postal_code": postal_code,
        "taxonomy_description": taxonomy_description,
    }
    if not any(criteria.values()):
        raise ValidationError("At least one search criterion is required")

    results = container.npi_verifier.search_npi(limit=limit, **criteria)
    return {"results": [result.model_dump() for result in results], "total": len(results)}


@router.get("/verification/npi/{npi_number}")
def verify_npi(
    npi_number: str,
    container: CredentialingContainer = Depends(get_container),
):
    """
    Look up an NPI in the CMS registry.

    Registry failures come back as `valid: false` with an `error`, not as an
    HTTP error.
    """
    return container.npi_verifier.verify_npi(npi_number).model_dump()


@router.get("/verification/npi/{npi_number}/checksum")
async def check_npi_checksum(npi_number: str):
    """Offline Luhn check-digit validation of an NPI."""
    return {"npi_number": npi_number, "valid_checksum": validate_npi_checksum(npi_number)}


@router.post("/verification/dea")
async def validate_dea(request: DEAValidationRequest):
    """
    Structural validation of a DEA number.

    **Returns:**
    - The validation result, plus `dea_required` when a `license_type` is given
    """
    result = validate_dea_number(request.dea_number, request.last_name).model_dump()
    if request.license_type is not None:
        result["dea_required"] = is_dea_required(request.license_type)
    return result
