"""
Core provider model.

A Provider is a healthcare professional seeking platform approval. Providers are
never hard-deleted; credentialing moves them between statuses instead.
"""
from sqlalchemy import Column, String, Integer, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.config.database import Base, TimestampMixin
from app.models.enums import CredentialingStatus, ProfileStatus


class Provider(Base, TimestampMixin):
    """
    Healthcare provider model.

    Two independent statuses are tracked:
    - credentialing_status: where the provider is in the verification workflow
    - profile_status: whether the public profile is visible

    profile_status=APPROVED is only ever set by the credentialing workflow once
    all eight timeline phases are completed.

    Attributes:
        first_name / last_name: Legal name used for exclusion matching
        npi_number: National Provider Identifier (10 digits, optional)
        dea_number: DEA registration number (9 characters, optional)
        license_number / license_state / license_type: State license details
        license_expiration / dea_expiration: Dates monitored for renewal

    Relationships:
        verifications, timeline, alerts, notes: one-to-many credentialing records
    """

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255))

    npi_number = Column(String(10), index=True)
    dea_number = Column(String(9))
    dea_expiration = Column(DateTime)

    license_number = Column(String(50))
    license_state = Column(String(2))
    license_type = Column(String(20))
    license_expiration = Column(DateTime)

    credentialing_status = Column(
        SQLEnum(CredentialingStatus),
        default=CredentialingStatus.NOT_STARTED,
        nullable=False,
        index=True,
    )
    profile_status = Column(
        SQLEnum(ProfileStatus),
        default=ProfileStatus.PENDING,
        nullable=False,
        index=True,
    )
    credentialing_started_at = Column(DateTime)
    credentialing_completed_at = Column(DateTime)
    last_credentialing_update = Column(DateTime)

    verifications = relationship("VerificationRecord", back_populates="provider")
    timeline = relationship("TimelinePhase", back_populates="provider")
    alerts = relationship("CredentialingAlert", back_populates="provider")
    notes = relationship("CredentialingNote", back_populates="provider")
