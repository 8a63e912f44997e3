"""Credentialing verification settings."""
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class CredentialingSettings(BaseSettings):
    """External sources, timeouts and thresholds for credentialing checks."""

    npi_api_url: str = Field("https://npiregistry.cms.hhs.gov/api/", alias="NPI_API_URL")
    npi_api_version: str = Field("2.1", alias="NPI_API_VERSION")

    oig_csv_url: str = Field(
        "https://oig.hhs.gov/exclusions/downloadables/UPDATED.csv",
        alias="OIG_CSV_URL",
    )
    oig_import_batch_size: int = Field(1000, alias="OIG_IMPORT_BATCH_SIZE", ge=1)

    sam_api_url: str = Field(
        "https://api.sam.gov/entity-information/v3/exclusions",
        alias="SAM_API_URL",
    )
    # Free-tier deployments run without a SAM key; the SAM check is skipped then.
    sam_api_key: Optional[str] = Field(None, alias="SAM_API_KEY")

    http_timeout: float = Field(30.0, alias="VERIFICATION_HTTP_TIMEOUT", gt=0)

    expiration_horizon_days: int = Field(60, alias="EXPIRATION_HORIZON_DAYS", ge=1)
    expiration_warning_days: int = Field(30, alias="EXPIRATION_WARNING_DAYS", ge=0)
    exclusion_recheck_days: int = Field(30, alias="EXCLUSION_RECHECK_DAYS", ge=1)
    expiration_reminder_days: str = Field("60,30,10", alias="EXPIRATION_REMINDER_DAYS")

    credentialing_contact_email: str = Field(
        "credentialing@example.com", alias="CREDENTIALING_CONTACT_EMAIL"
    )

    exclusion_sweep_concurrency: int = Field(1, alias="EXCLUSION_SWEEP_CONCURRENCY", ge=1)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @property
    def sam_enabled(self) -> bool:
        return bool(self.sam_api_key)

    @property
    def reminder_days(self) -> List[int]:
        """Reminder offsets parsed from the comma-separated setting."""
        return sorted(
            {int(day.strip()) for day in self.expiration_reminder_days.split(",") if day.strip()},
            reverse=True,
        )


def get_credentialing_settings() -> CredentialingSettings:
    """Build settings from the current environment."""
    return CredentialingSettings()
