"""
SQLAlchemy models for credentialing records.

The Provider model lives in app.models.core; enums in app.models.enums.

Credentialing:
- VerificationRecord: immutable result of one automated check (audit history)
- TimelinePhase: one row per (provider, phase), eight per provider
- CredentialingAlert: flagged condition awaiting human review
- CredentialingNote: internal workflow notes

Reference data:
- ExclusionRecord: one row of the OIG LEIE snapshot, replaced wholesale monthly

All models inherit from Base and TimestampMixin.
"""
from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.config.database import Base, TimestampMixin
from app.models.enums import (
    VerificationType,
    VerificationStatus,
    CredentialingPhase,
    PhaseStatus,
    AlertSeverity,
)
from app.models.core import Provider  # noqa: F401


class VerificationRecord(Base, TimestampMixin):
    """
    Result of one automated check run against one provider.

    Records are append-only: a re-check writes a new row so the full audit
    history is preserved.

    Attributes:
        verification_type: npi, dea, oig or sam
        status: verified or failed
        verified_by: always "automated" for records written by the workflow
        verification_source: human-readable origin (e.g. "CMS NPI Registry API")
        verification_data: JSON-serialized raw checker result
        expiration_date: when the verified credential expires (DEA)
        next_check_date: when the check should be repeated (OIG/SAM)
    """

    __tablename__ = "credentialing_verifications"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    verification_type = Column(SQLEnum(VerificationType), nullable=False, index=True)
    status = Column(SQLEnum(VerificationStatus), nullable=False)
    verification_date = Column(DateTime, nullable=False, default=func.now(), index=True)
    verified_by = Column(String(50), nullable=False, default="automated")
    verification_source = Column(String(255))
    verification_data = Column(Text)
    notes = Column(Text)
    expiration_date = Column(DateTime)
    next_check_date = Column(DateTime)

    provider = relationship("Provider", back_populates="verifications")


class TimelinePhase(Base, TimestampMixin):
    """
    One credentialing phase for one provider.

    The unique constraint guarantees exactly one row per (provider, phase).
    """

    __tablename__ = "credentialing_timeline"
    __table_args__ = (
        UniqueConstraint("provider_id", "phase", name="uq_credentialing_timeline_provider_phase"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    phase = Column(SQLEnum(CredentialingPhase), nullable=False)
    status = Column(SQLEnum(PhaseStatus), nullable=False, default=PhaseStatus.PENDING)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    notes = Column(Text)

    provider = relationship("Provider", back_populates="timeline")


class CredentialingAlert(Base, TimestampMixin):
    """
    Condition requiring human review.

    alert_type is free text (see AlertType for the values the workflow writes)
    so admin tooling can add its own. Alerts are only resolved by an explicit
    admin action.
    """

    __tablename__ = "credentialing_alerts"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False, index=True)
    severity = Column(SQLEnum(AlertSeverity), nullable=False, index=True)
    message = Column(Text, nullable=False)
    resolved = Column(Boolean, nullable=False, default=False, index=True)
    resolved_at = Column(DateTime)
    resolved_by = Column(String(100))

    provider = relationship("Provider", back_populates="alerts")


class CredentialingNote(Base, TimestampMixin):
    """Internal note attached to a provider's credentialing file."""

    __tablename__ = "credentialing_notes"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    author_id = Column(String(100), nullable=False, default="system")
    note_type = Column(String(50), nullable=False, default="general")
    note = Column(Text, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=True)

    provider = relationship("Provider", back_populates="notes")


class ExclusionRecord(Base):
    """
    One row of the OIG List of Excluded Individuals/Entities.

    Column values are kept as the raw CSV strings. Names are stored upper-case
    as published, which is what exact-match lookups compare against.
    """

    __tablename__ = "oig_exclusions"

    id = Column(Integer, primary_key=True, index=True)
    last_name = Column(String(100), nullable=False, index=True)
    first_name = Column(String(100), nullable=False, index=True)
    middle_name = Column(String(100))
    business_name = Column(String(255))
    general = Column(String(100))
    specialty = Column(String(100))
    npi = Column(String(10), index=True)
    dob = Column(String(10))
    address = Column(String(255))
    city = Column(String(100))
    state = Column(String(2))
    zip = Column(String(10))
    excl_type = Column(String(20))
    excl_date = Column(String(10))
    rein_date = Column(String(10))
    waiver_date = Column(String(10))
    waiver_state = Column(String(2))
    imported_at = Column(DateTime, nullable=False, default=func.now())
