"""
Provider credentialing workflow.

Each provider moves through eight fixed phases (see CredentialingPhase). The
service seeds the timeline, runs the automated checks (NPI, DEA, OIG, SAM),
reports progress, records phase completion and auto-approves the provider
once every phase is completed. Daily maintenance (expiring credentials,
lapsed licenses, reminders, weekly report) lives here too so the Celery tasks
stay thin.

Every operation that writes commits once at the end and rolls back on error,
so one provider's records change together.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config.credentialing import CredentialingSettings, get_credentialing_settings
from app.models.core import Provider
from app.models.database import CredentialingAlert, TimelinePhase, VerificationRecord
from app.models.enums import (
    AlertSeverity,
    AlertType,
    CredentialingPhase,
    CredentialingStatus,
    PhaseStatus,
    ProfileStatus,
    VerificationType,
)
from app.services.credentialing.dea import validate_dea_number
from app.services.credentialing.exclusions import OIG_SOURCE, SAM_SOURCE, ExclusionChecker
from app.services.credentialing.npi import NPIVerifier
from app.services.credentialing.records import (
    add_alert,
    add_note,
    add_verification,
    alert_to_dict,
    has_unresolved_alert,
)
from app.utils.errors import InvalidPhaseError, NotFoundError, ProviderNotFoundError
from app.utils.logger import bind_provider_context, get_logger
from app.utils.notifications import AlertNotifier

logger = get_logger(__name__)

PHASE_ORDER: List[CredentialingPhase] = list(CredentialingPhase)
DEA_SOURCE = "DEA Format Validation"

INITIAL_NOTE = (
    "Credentialing process initialized. Waiting for provider to upload required documents."
)


def parse_phase(phase: Any) -> CredentialingPhase:
    """Resolve a phase name; raises InvalidPhaseError for anything unknown."""
    if isinstance(phase, CredentialingPhase):
        return phase
    try:
        return CredentialingPhase(str(phase).strip().lower())
    except ValueError:
        raise InvalidPhaseError(str(phase), allowed=[p.value for p in PHASE_ORDER])


class CredentialingService:
    """
    Orchestrates credentialing for providers.

    Collaborators are injected; see app/services/credentialing/container.py
    for how the API and Celery tasks build one.
    """

    def __init__(
        self,
        db: Session,
        npi_verifier: NPIVerifier,
        exclusion_checker: ExclusionChecker,
        notifier: Optional[AlertNotifier] = None,
        settings: Optional[CredentialingSettings] = None,
    ):
        self.db = db
        self.npi_verifier = npi_verifier
        self.exclusion_checker = exclusion_checker
        self.notifier = notifier or AlertNotifier()
        self.settings = settings or get_credentialing_settings()

    def _get_provider(self, provider_id: int) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if provider is None:
            raise ProviderNotFoundError(provider_id)
        return provider

    def _timeline(self, provider_id: int) -> List[TimelinePhase]:
        rows = self.db.query(TimelinePhase).filter(TimelinePhase.provider_id == provider_id).all()
        return sorted(rows, key=lambda row: PHASE_ORDER.index(row.phase))

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def initialize_credentialing(self, provider_id: int) -> bool:
        """
        Start credentialing: status documents_pending and eight pending phases.

        The phases, the status change and the initial note are written in one
        commit. Does nothing when the provider already has timeline rows.

        Returns:
            True if the timeline was created, False if it already existed
        """
        provider = self._get_provider(provider_id)

        with bind_provider_context(provider_id, operation="initialize"):
            existing = (
                self.db.query(func.count(TimelinePhase.id))
                .filter(TimelinePhase.provider_id == provider_id)
                .scalar()
            )
            if existing:
                logger.info("Credentialing already initialized", phases=existing)
                return False

            now = datetime.now()
            try:
                provider.credentialing_status = CredentialingStatus.DOCUMENTS_PENDING
                provider.credentialing_started_at = now
                provider.last_credentialing_update = now
                for phase in PHASE_ORDER:
                    self.db.add(
                        TimelinePhase(
                            provider_id=provider_id,
                            phase=phase,
                            status=PhaseStatus.PENDING,
                        )
                    )
                add_note(self.db, provider_id, INITIAL_NOTE, note_type="system")
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

            logger.info("Credentialing initialized", phases=len(PHASE_ORDER))
            return True

    def run_automated_verifications(self, provider_id: int) -> Dict[str, bool]:
        """
        Run NPI, DEA, OIG and SAM checks for a provider.

        NPI and DEA run only when the provider has the number on file, OIG
        always, SAM only with an API key. Checks are independent; each writes
        its own verification record and, on failure, its own alert.

        An OIG match rejects the provider (profile and credentialing status)
        and raises a critical alert. A clean run (OIG passed, plus NPI and DEA
        when present) moves the provider to under_review.

        Returns:
            {"npi": bool, "dea": bool, "oig": bool, "sam": bool}; a check that
            did not run is False
        """
        provider = self._get_provider(provider_id)
        results = {"npi": False, "dea": False, "oig": False, "sam": False}
        notifications = []
        rejected = False
        sam_excluded = False
        now = datetime.now()
        next_check = self.exclusion_checker.next_check_date()

        with bind_provider_context(provider_id, operation="verify"):
            logger.info("Starting automated verifications")
            try:
                if provider.npi_number:
                    results["npi"] = self._verify_npi(provider)

                if provider.dea_number:
                    results["dea"] = self._verify_dea(provider)

                oig = self.exclusion_checker.check_oig_exclusion(
                    provider.first_name, provider.last_name, provider.npi_number
                )
                if oig.matched:
                    details = oig.exclusion
                    add_verification(
                        self.db, provider_id, VerificationType.OIG, False, OIG_SOURCE,
                        result=oig,
                        notes=f"EXCLUDED: {details.exclusion_type} - {details.exclusion_date}",
                    )
                    add_alert(
                        self.db, provider_id, AlertType.OIG_MATCH, AlertSeverity.CRITICAL,
                        "CRITICAL: Provider appears on OIG Exclusion List. "
                        f"Type: {details.exclusion_type}. Date: {details.exclusion_date}. "
                        "IMMEDIATE ACTION REQUIRED.",
                    )
                    provider.profile_status = ProfileStatus.REJECTED
                    provider.credentialing_status = CredentialingStatus.REJECTED
                    rejected = True
                    notifications.append((
                        "OIG Exclusion Match",
                        "Your name appears on the OIG Exclusion List. This is a critical "
                        "compliance issue that must be resolved immediately.",
                    ))
                    logger.error(
                        "OIG exclusion found, provider rejected",
                        confidence=oig.confidence.value,
                        matched_on=oig.matched_on,
                    )
                elif not oig.screened:
                    add_verification(
                        self.db, provider_id, VerificationType.OIG, False, OIG_SOURCE,
                        result=oig,
                        notes="OIG exclusion check could not be completed; re-check required",
                    )
                    add_alert(
                        self.db, provider_id, AlertType.OIG_CHECK_INCOMPLETE, AlertSeverity.WARNING,
                        "OIG exclusion check could not be completed. Re-run verification "
                        "before approving this provider.",
                    )
                    logger.warning("OIG check did not run")
                else:
                    add_verification(
                        self.db, provider_id, VerificationType.OIG, True, OIG_SOURCE,
                        result=oig,
                        notes="No match found in OIG exclusion list",
                        next_check_date=next_check,
                    )
                    results["oig"] = True

                if self.settings.sam_enabled:
                    sam = self.exclusion_checker.check_sam_exclusion(
                        provider.first_name, provider.last_name
                    )
                    if sam.excluded:
                        sam_excluded = True
                        add_verification(
                            self.db, provider_id, VerificationType.SAM, False, SAM_SOURCE,
                            result=sam,
                            notes=f"EXCLUDED: {sam.exclusion_type}",
                        )
                        add_alert(
                            self.db, provider_id, AlertType.SAM_EXCLUSION, AlertSeverity.CRITICAL,
                            "CRITICAL: Provider appears on SAM.gov Exclusion List. "
                            f"Type: {sam.exclusion_type}. IMMEDIATE ACTION REQUIRED.",
                        )
                        notifications.append((
                            "SAM Exclusion Match",
                            "Your name appears on the SAM.gov Exclusion List. This is a "
                            "critical compliance issue that must be resolved immediately.",
                        ))
                        logger.error("SAM exclusion found", exclusion_type=sam.exclusion_type)
                    elif not sam.checked:
                        add_verification(
                            self.db, provider_id, VerificationType.SAM, False, SAM_SOURCE,
                            result=sam,
                            notes=sam.error or "SAM exclusion check could not be completed",
                        )
                        add_alert(
                            self.db, provider_id, AlertType.SAM_CHECK_INCOMPLETE, AlertSeverity.WARNING,
                            f"SAM.gov exclusion check could not be completed: {sam.error}",
                        )
                    else:
                        add_verification(
                            self.db, provider_id, VerificationType.SAM, True, SAM_SOURCE,
                            result=sam,
                            notes="No match found in SAM exclusion list",
                            next_check_date=next_check,
                        )
                        results["sam"] = True

                npi_ok = results["npi"] or not provider.npi_number
                dea_ok = results["dea"] or not provider.dea_number
                if (
                    not rejected
                    and not sam_excluded
                    and npi_ok
                    and dea_ok
                    and results["oig"]
                    and provider.credentialing_status in (
                        CredentialingStatus.NOT_STARTED,
                        CredentialingStatus.DOCUMENTS_PENDING,
                    )
                ):
                    provider.credentialing_status = CredentialingStatus.UNDER_REVIEW
                    logger.info("Automated verifications passed, moved to under review")

                provider.last_credentialing_update = now
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error("Automated verifications failed", error=str(e))
                raise

            # Dispatched after commit; delivery never affects the recorded outcome
            for alert_type, message in notifications:
                self.notifier.notify(
                    provider_id,
                    alert_type,
                    message,
                    AlertSeverity.CRITICAL.value,
                    "Please contact our credentialing team immediately at "
                    f"{self.settings.credentialing_contact_email} to discuss this matter.",
                )

            logger.info("Automated verifications complete", **results)
            return results

    def _verify_npi(self, provider: Provider) -> bool:
        result = self.npi_verifier.verify_npi(provider.npi_number)
        if result.valid:
            add_verification(
                self.db, provider.id, VerificationType.NPI, True, NPIVerifier.SOURCE,
                result=result,
                notes=f"NPI verified: {result.name}, {result.specialty_description}",
            )
            return True

        add_verification(
            self.db, provider.id, VerificationType.NPI, False, NPIVerifier.SOURCE,
            result=result,
            notes=f"NPI verification failed: {result.error}",
        )
        add_alert(
            self.db, provider.id, AlertType.NPI_VERIFICATION_FAILED, AlertSeverity.WARNING,
            f"NPI verification failed: {result.error}",
        )
        logger.warning("NPI verification failed", error=result.error)
        return False

    def _verify_dea(self, provider: Provider) -> bool:
        result = validate_dea_number(provider.dea_number, provider.last_name)
        if result.valid:
            add_verification(
                self.db, provider.id, VerificationType.DEA, True, DEA_SOURCE,
                result=result,
                notes=f"DEA format validated: {result.registrant_type_description}",
                expiration_date=provider.dea_expiration,
            )
            return True

        errors = ", ".join(result.errors)
        add_verification(
            self.db, provider.id, VerificationType.DEA, False, DEA_SOURCE,
            result=result,
            notes=f"DEA validation failed: {errors}",
        )
        add_alert(
            self.db, provider.id, AlertType.DEA_VALIDATION_FAILED, AlertSeverity.WARNING,
            f"DEA validation failed: {errors}",
        )
        logger.warning("DEA validation failed", errors=result.errors)
        return False

    def get_credentialing_progress(
        self, provider_id: int, include_notes: bool = True
    ) -> Dict[str, Any]:
        """
        Summarize a provider's credentialing: phases, current phase, days in
        process and the full verification history (newest first). Read-only.

        include_notes=False drops verification notes, which can carry
        upstream error text, for provider-facing responses.
        """
        provider = self._get_provider(provider_id)
        timeline = self._timeline(provider_id)
        verifications = (
            self.db.query(VerificationRecord)
            .filter(VerificationRecord.provider_id == provider_id)
            .order_by(VerificationRecord.verification_date.desc(), VerificationRecord.id.desc())
            .all()
        )

        completed = [row.phase.value for row in timeline if row.status == PhaseStatus.COMPLETED]
        pending = [row.phase.value for row in timeline if row.status == PhaseStatus.PENDING]
        failed = [row.phase.value for row in timeline if row.status == PhaseStatus.FAILED]
        in_progress = [row.phase.value for row in timeline if row.status == PhaseStatus.IN_PROGRESS]

        if in_progress:
            current_phase = in_progress[0]
        elif pending:
            current_phase = pending[0]
        else:
            current_phase = CredentialingPhase.FINAL_REVIEW.value

        days_in_process = None
        if provider.credentialing_started_at:
            days_in_process = (datetime.now() - provider.credentialing_started_at).days

        return {
            "provider_id": provider.id,
            "current_phase": current_phase,
            "credentialing_status": provider.credentialing_status.value,
            "profile_status": provider.profile_status.value,
            "completed_phases": completed,
            "pending_phases": pending,
            "failed_phases": failed,
            "in_progress_phases": in_progress,
            "start_date": _isoformat(provider.credentialing_started_at),
            "completed_date": _isoformat(provider.credentialing_completed_at),
            "days_in_process": days_in_process,
            "total_phases": len(PHASE_ORDER),
            "completed_phases_count": len(completed),
            "timeline": [
                {
                    "phase": row.phase.value,
                    "status": row.status.value,
                    "started_at": _isoformat(row.started_at),
                    "completed_at": _isoformat(row.completed_at),
                    "notes": row.notes,
                }
                for row in timeline
            ],
            "verifications": [
                {
                    "id": record.id,
                    "verification_type": record.verification_type.value,
                    "status": record.status.value,
                    "verification_date": _isoformat(record.verification_date),
                    "verified_by": record.verified_by,
                    "verification_source": record.verification_source,
                    "notes": record.notes if include_notes else None,
                    "expiration_date": _isoformat(record.expiration_date),
                    "next_check_date": _isoformat(record.next_check_date),
                }
                for record in verifications
            ],
            "provider_info": {
                "npi_number": provider.npi_number,
                "first_name": provider.first_name,
                "last_name": provider.last_name,
                "license_number": provider.license_number,
                "license_state": provider.license_state,
            },
        }

    def _get_phase(self, provider_id: int, phase: CredentialingPhase) -> TimelinePhase:
        row = (
            self.db.query(TimelinePhase)
            .filter(TimelinePhase.provider_id == provider_id, TimelinePhase.phase == phase)
            .first()
        )
        if row is None:
            raise NotFoundError("Credentialing phase", f"{provider_id}/{phase.value}")
        return row

    def start_credentialing_phase(self, provider_id: int, phase: str) -> Dict[str, Any]:
        """Mark a pending phase in_progress."""
        phase = parse_phase(phase)
        self._get_provider(provider_id)
        row = self._get_phase(provider_id, phase)

        with bind_provider_context(provider_id, phase=phase.value):
            if row.status == PhaseStatus.PENDING:
                row.status = PhaseStatus.IN_PROGRESS
                row.started_at = datetime.now()
                self._commit()
                logger.info("Credentialing phase started")
        return self.get_credentialing_progress(provider_id)

    def fail_credentialing_phase(
        self, provider_id: int, phase: str, notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """Mark a phase failed; a failed phase blocks approval until completed."""
        phase = parse_phase(phase)
        provider = self._get_provider(provider_id)
        row = self._get_phase(provider_id, phase)

        with bind_provider_context(provider_id, phase=phase.value):
            row.status = PhaseStatus.FAILED
            row.completed_at = None
            row.notes = notes
            provider.last_credentialing_update = datetime.now()
            self._commit()
            logger.warning("Credentialing phase failed", notes=notes)
        return self.get_credentialing_progress(provider_id)

    def complete_credentialing_phase(
        self, provider_id: int, phase: str, notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Mark one phase completed, then approve the provider if all eight are.

        Approval sets profile and credentialing status to approved and stamps
        credentialing_completed_at. It is withheld while the provider is
        rejected or has an unresolved critical alert. Completing an already
        completed phase only updates its notes.

        Raises:
            InvalidPhaseError: Unknown phase name
            ProviderNotFoundError: Unknown provider
            NotFoundError: Credentialing was never initialized for the provider
        """
        phase = parse_phase(phase)
        provider = self._get_provider(provider_id)
        row = self._get_phase(provider_id, phase)
        approved = False

        with bind_provider_context(provider_id, phase=phase.value):
            try:
                now = datetime.now()
                if row.status != PhaseStatus.COMPLETED:
                    row.status = PhaseStatus.COMPLETED
                    row.completed_at = now
                    row.started_at = row.started_at or now
                row.notes = notes
                provider.last_credentialing_update = now
                self.db.flush()

                timeline = self._timeline(provider_id)
                all_completed = len(timeline) == len(PHASE_ORDER) and all(
                    item.status == PhaseStatus.COMPLETED for item in timeline
                )
                if all_completed and provider.profile_status != ProfileStatus.APPROVED:
                    blocker = self._approval_blocker(provider)
                    if blocker:
                        logger.warning("All phases completed but approval withheld", reason=blocker)
                    else:
                        provider.profile_status = ProfileStatus.APPROVED
                        provider.credentialing_status = CredentialingStatus.APPROVED
                        provider.credentialing_completed_at = now
                        approved = True

                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

            logger.info("Credentialing phase completed")
            if approved:
                logger.info("All phases completed, provider approved")
                self.notifier.notify(
                    provider_id,
                    "Credentialing Approved",
                    "Congratulations! Your credentialing is complete and your profile is now live.",
                    AlertSeverity.INFO.value,
                )

        return self.get_credentialing_progress(provider_id)

    def _approval_blocker(self, provider: Provider) -> Optional[str]:
        if provider.credentialing_status == CredentialingStatus.REJECTED:
            return "provider rejected"
        critical_open = (
            self.db.query(CredentialingAlert.id)
            .filter(
                CredentialingAlert.provider_id == provider.id,
                CredentialingAlert.severity == AlertSeverity.CRITICAL,
                CredentialingAlert.resolved.is_(False),
            )
            .first()
        )
        if critical_open is not None:
            return "unresolved critical alert"
        return None

    def _approved_providers(self) -> List[Provider]:
        return (
            self.db.query(Provider)
            .filter(Provider.profile_status == ProfileStatus.APPROVED)
            .order_by(Provider.id)
            .all()
        )

    def check_expiring_credentials(self) -> Dict[str, int]:
        """
        Alert on licenses and DEA registrations expiring within the horizon.

        Alerts are info beyond the warning threshold and warning within it.
        A provider with an open alert of the same type and severity is skipped,
        so daily runs do not pile up duplicates but an info alert still
        escalates to a warning once the threshold is crossed.

        Returns:
            {"checked", "alerts_created", "suppressed"}
        """
        now = datetime.now()
        horizon = now + timedelta(days=self.settings.expiration_horizon_days)
        providers = self._approved_providers()
        alerts_created = 0
        suppressed = 0

        logger.info("Checking for expiring credentials", providers=len(providers))

        try:
            for provider in providers:
                expirations = [
                    (AlertType.LICENSE_EXPIRING, "License", provider.license_expiration),
                    (AlertType.DEA_EXPIRING, "DEA registration", provider.dea_expiration),
                ]
                for alert_type, label, expires_at in expirations:
                    if expires_at is None or not (now < expires_at <= horizon):
                        continue
                    days_left = (expires_at - now).days
                    severity = (
                        AlertSeverity.WARNING
                        if days_left <= self.settings.expiration_warning_days
                        else AlertSeverity.INFO
                    )
                    if has_unresolved_alert(self.db, provider.id, alert_type, severity):
                        suppressed += 1
                        continue

                    add_alert(
                        self.db, provider.id, alert_type, severity,
                        f"{label} expires in {days_left} days ({expires_at.strftime('%m/%d/%Y')}). "
                        "Provider needs to renew.",
                    )
                    alerts_created += 1
                    logger.info(
                        "Expiring credential alert created",
                        provider_id=provider.id,
                        alert_type=alert_type.value,
                        days_left=days_left,
                    )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        summary = {"checked": len(providers), "alerts_created": alerts_created, "suppressed": suppressed}
        logger.info("Expiring credentials check complete", **summary)
        return summary

    def expire_lapsed_licenses(self) -> Dict[str, int]:
        """
        Deactivate approved providers whose license has expired.

        Each one is set inactive/rejected and gets a critical license_expired
        alert.
        """
        now = datetime.now()
        providers = self._approved_providers()
        deactivated = 0

        try:
            for provider in providers:
                if provider.license_expiration is None or provider.license_expiration > now:
                    continue
                provider.profile_status = ProfileStatus.INACTIVE
                provider.credentialing_status = CredentialingStatus.REJECTED
                provider.last_credentialing_update = now
                add_alert(
                    self.db, provider.id, AlertType.LICENSE_EXPIRED, AlertSeverity.CRITICAL,
                    f"License expired on {provider.license_expiration.strftime('%m/%d/%Y')}. "
                    "Profile deactivated until a renewed license is verified.",
                )
                deactivated += 1
                logger.warning("Provider deactivated for expired license", provider_id=provider.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        summary = {"checked": len(providers), "deactivated": deactivated}
        logger.info("Lapsed license check complete", **summary)
        return summary

    def send_expiration_reminders(self) -> Dict[str, int]:
        """Notify providers whose license or DEA expires in exactly a reminder day count."""
        today = datetime.now().date()
        reminder_days = set(self.settings.reminder_days)
        providers = self._approved_providers()
        sent = 0

        for provider in providers:
            expirations = [
                ("License", provider.license_expiration),
                ("DEA registration", provider.dea_expiration),
            ]
            for label, expires_at in expirations:
                if expires_at is None:
                    continue
                days_left = (expires_at.date() - today).days
                if days_left not in reminder_days:
                    continue
                self.notifier.notify(
                    provider.id,
                    f"{label} Expiring",
                    f"Your {label.lower()} expires in {days_left} days "
                    f"({expires_at.strftime('%m/%d/%Y')}).",
                    AlertSeverity.WARNING.value,
                    "Please upload your renewed document before it expires.",
                )
                sent += 1

        summary = {"checked": len(providers), "reminders_sent": sent}
        logger.info("Expiration reminders sent", **summary)
        return summary

    def weekly_credentialing_report(self) -> Dict[str, Any]:
        """Provider counts per credentialing status plus open alerts."""
        counts = dict(
            self.db.query(Provider.credentialing_status, func.count(Provider.id))
            .group_by(Provider.credentialing_status)
            .all()
        )
        unresolved = (
            self.db.query(func.count(CredentialingAlert.id))
            .filter(CredentialingAlert.resolved.is_(False))
            .scalar()
        )
        critical = (
            self.db.query(func.count(CredentialingAlert.id))
            .filter(
                CredentialingAlert.resolved.is_(False),
                CredentialingAlert.severity == AlertSeverity.CRITICAL,
            )
            .scalar()
        )
        report = {
            "generated_at": datetime.now().isoformat(),
            "by_status": {status.value: counts.get(status, 0) for status in CredentialingStatus},
            "unresolved_alerts": unresolved or 0,
            "critical_alerts": critical or 0,
        }
        logger.info("Weekly credentialing report", **report)
        return report

    def list_alerts(
        self,
        resolved: Optional[bool] = False,
        provider_id: Optional[int] = None,
        severity: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        query = self.db.query(CredentialingAlert)
        if resolved is not None:
            query = query.filter(CredentialingAlert.resolved.is_(resolved))
        if provider_id is not None:
            query = query.filter(CredentialingAlert.provider_id == provider_id)
        if severity:
            query = query.filter(CredentialingAlert.severity == AlertSeverity(severity))
        alerts = query.order_by(CredentialingAlert.created_at.desc(), CredentialingAlert.id.desc()).limit(limit).all()
        return [alert_to_dict(alert) for alert in alerts]

    def resolve_alert(self, alert_id: int, resolved_by: str) -> Dict[str, Any]:
        """Mark an alert resolved by an admin."""
        alert = self.db.query(CredentialingAlert).filter(CredentialingAlert.id == alert_id).first()
        if alert is None:
            raise NotFoundError("Credentialing alert", str(alert_id))

        if not alert.resolved:
            alert.resolved = True
            alert.resolved_at = datetime.now()
            alert.resolved_by = resolved_by
            self._commit()
            logger.info(
                "Credentialing alert resolved",
                alert_id=alert_id,
                provider_id=alert.provider_id,
                resolved_by=resolved_by,
            )
        return alert_to_dict(alert)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
