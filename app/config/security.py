"""
HTTP security configuration: CORS origins, methods and headers.

Settings are validated at startup by `validate_security_settings()` (called
from `app/core/setup.py`) so the API never starts with a wildcard origin, or
with plain-HTTP or localhost origins in production.
"""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

from app.utils.errors import AppError
from app.utils.logger import get_logger

logger = get_logger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class SecuritySettings(BaseSettings):
    """CORS settings loaded from the environment."""

    cors_origins: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
        description="Comma-separated list of allowed origins. Wildcards are rejected.",
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = SecuritySettings()


def validate_security_settings() -> None:
    """
    Validate CORS settings for the current environment.

    Raises:
        AppError: Wildcard origin in any environment, or a localhost/HTTP
            origin in production
    """
    errors: List[str] = []

    for origin in get_cors_origins():
        if "*" in origin:
            errors.append(f"CORS origin '{origin}' uses a wildcard; list exact origins instead.")
            continue
        if settings.is_production:
            if any(host in origin for host in LOCAL_HOSTS):
                errors.append(f"CORS origin '{origin}' points at localhost in production.")
            elif not origin.startswith("https://"):
                errors.append(f"CORS origin '{origin}' must use HTTPS in production.")

    if errors:
        for error in errors:
            logger.error("Security configuration error", error=error)
        raise AppError(
            message="Insecure security configuration",
            status_code=500,
            code="INSECURE_CONFIGURATION",
            details={"errors": errors},
        )


def get_cors_origins() -> List[str]:
    """
    Get CORS origins from environment as a list.

    **Examples:**
    - Development: `CORS_ORIGINS=http://localhost:3000,http://localhost:8000`
    - Production: `CORS_ORIGINS=https://app.example.com,https://admin.example.com`
    """
    return [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]


def get_cors_methods() -> List[str]:
    """Allowed CORS HTTP methods; HEAD is only allowed outside production."""
    methods = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    if not settings.is_production:
        methods.append("HEAD")
    return methods


def get_cors_headers() -> List[str]:
    """Allowed CORS headers."""
    headers = ["Content-Type", "Authorization", "Accept", "X-Requested-With"]
    if not settings.is_production:
        headers.extend(["Accept-Language", "Content-Language"])
    return headers

