"""
Status and type enumerations for credentialing models.

Enums are string enums so they serialize cleanly to JSON. SQLAlchemy's Enum
type stores the member NAME in the database (see the initial migration).
"""
import enum


class CredentialingStatus(str, enum.Enum):
    """Aggregate credentialing status shown to the provider."""

    NOT_STARTED = "not_started"
    DOCUMENTS_PENDING = "documents_pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProfileStatus(str, enum.Enum):
    """Public visibility of a provider profile."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INACTIVE = "inactive"


class CredentialingPhase(str, enum.Enum):
    """The eight fixed credentialing phases, in workflow order."""

    DOCUMENT_REVIEW = "document_review"
    NPI_VERIFICATION = "npi_verification"
    LICENSE_VERIFICATION = "license_verification"
    EDUCATION_VERIFICATION = "education_verification"
    BACKGROUND_CHECK = "background_check"
    INSURANCE_VERIFICATION = "insurance_verification"
    OIG_SAM_CHECK = "oig_sam_check"
    FINAL_REVIEW = "final_review"


class PhaseStatus(str, enum.Enum):
    """Timeline phase status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class VerificationType(str, enum.Enum):
    """Automated check that produced a verification record."""

    NPI = "npi"
    DEA = "dea"
    OIG = "oig"
    SAM = "sam"


class VerificationStatus(str, enum.Enum):
    """Outcome of an automated check."""

    VERIFIED = "verified"
    FAILED = "failed"


class AlertSeverity(str, enum.Enum):
    """Alert severity."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertType(str, enum.Enum):
    """Conditions that raise a credentialing alert."""

    OIG_MATCH = "oig_match"
    OIG_CHECK_INCOMPLETE = "oig_check_incomplete"
    SAM_EXCLUSION = "sam_exclusion"
    SAM_CHECK_INCOMPLETE = "sam_check_incomplete"
    NPI_VERIFICATION_FAILED = "npi_verification_failed"
    DEA_VALIDATION_FAILED = "dea_validation_failed"
    LICENSE_EXPIRING = "license_expiring"
    LICENSE_EXPIRED = "license_expired"
    DEA_EXPIRING = "dea_expiring"


class MatchConfidence(str, enum.Enum):
    """Confidence of an exclusion-list match."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
