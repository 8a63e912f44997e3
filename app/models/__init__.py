"""
Database models package.

**Imports:**
    from app.models import Provider, VerificationRecord
    from app.models.enums import CredentialingStatus
"""

from app.models.enums import (
    CredentialingStatus,
    ProfileStatus,
    CredentialingPhase,
    PhaseStatus,
    VerificationType,
    VerificationStatus,
    AlertSeverity,
    AlertType,
    MatchConfidence,
)

from app.models.core import Provider

from app.models.database import (
    VerificationRecord,
    TimelinePhase,
    CredentialingAlert,
    CredentialingNote,
    ExclusionRecord,
)

__all__ = [
    # Enums
    "CredentialingStatus",
    "ProfileStatus",
    "CredentialingPhase",
    "PhaseStatus",
    "VerificationType",
    "VerificationStatus",
    "AlertSeverity",
    "AlertType",
    "MatchConfidence",
    # Models
    "Provider",
    "VerificationRecord",
    "TimelinePhase",
    "CredentialingAlert",
    "CredentialingNote",
    "ExclusionRecord",
]
