"""
Append helpers for credentialing records.

Helpers add to the session and never commit; the calling service owns the
transaction so a provider's verifications, alerts and status change land
together.
"""
import json
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.database import CredentialingAlert, CredentialingNote, VerificationRecord
from app.models.enums import AlertSeverity, VerificationStatus, VerificationType


def serialize_result(result: Any) -> Optional[str]:
    """JSON-encode a checker result for VerificationRecord.verification_data."""
    if result is None:
        return None
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    return json.dumps(result, default=str)


def add_verification(
    db: Session,
    provider_id: int,
    verification_type: VerificationType,
    passed: bool,
    source: str,
    result: Any = None,
    notes: Optional[str] = None,
    expiration_date: Optional[datetime] = None,
    next_check_date: Optional[datetime] = None,
) -> VerificationRecord:
    record = VerificationRecord(
        provider_id=provider_id,
        verification_type=verification_type,
        status=VerificationStatus.VERIFIED if passed else VerificationStatus.FAILED,
        verification_date=datetime.now(),
        verified_by="automated",
        verification_source=source,
        verification_data=serialize_result(result),
        notes=notes,
        expiration_date=expiration_date,
        next_check_date=next_check_date,
    )
    db.add(record)
    return record


def add_alert(
    db: Session,
    provider_id: int,
    alert_type: str,
    severity: AlertSeverity,
    message: str,
) -> CredentialingAlert:
    alert = CredentialingAlert(
        provider_id=provider_id,
        alert_type=str(getattr(alert_type, "value", alert_type)),
        severity=severity,
        message=message,
        resolved=False,
    )
    db.add(alert)
    return alert


def add_note(
    db: Session,
    provider_id: int,
    note: str,
    note_type: str = "general",
    author_id: str = "system",
    is_internal: bool = True,
) -> CredentialingNote:
    record = CredentialingNote(
        provider_id=provider_id,
        author_id=author_id,
        note_type=note_type,
        note=note,
        is_internal=is_internal,
    )
    db.add(record)
    return record


def has_unresolved_alert(
    db: Session,
    provider_id: int,
    alert_type: str,
    severity: Optional[AlertSeverity] = None,
) -> bool:
    """Whether the provider already has an open alert of this type (and severity, if given)."""
    alert_type = str(getattr(alert_type, "value", alert_type))
    query = db.query(CredentialingAlert.id).filter(
        CredentialingAlert.provider_id == provider_id,
        CredentialingAlert.alert_type == alert_type,
        CredentialingAlert.resolved.is_(False),
    )
    if severity is not None:
        query = query.filter(CredentialingAlert.severity == severity)
    return query.first() is not None


def alert_to_dict(alert: CredentialingAlert) -> Dict[str, Any]:
    return {
        "id": alert.id,
        "provider_id": alert.provider_id,
        "alert_type": alert.alert_type,
        "severity": alert.severity.value if alert.severity else None,
        "message": alert.message,
        "resolved": alert.resolved,
        "resolved_at": alert.resolved_at.isoformat() if alert.resolved_at else None,
        "resolved_by": alert.resolved_by,
        "created_at": alert.created_at.isoformat() if alert.created_at else None,
    }
