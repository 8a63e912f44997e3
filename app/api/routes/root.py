"""Root endpoint with application information."""
from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint providing application information.

    **Returns:**
    - `name`: Application name
    - `version`: Application version
    - `status`: Current application status
    """
    return {
        "name": "Provider Credentialing Service",
        "version": "1.0.0",
        "status": "running",
    }
