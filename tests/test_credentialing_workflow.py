"""Tests for the credentialing workflow service."""
import json
from datetime import datetime, timedelta

import pytest

from app.models.database import (
    CredentialingAlert,
    CredentialingNote,
    ExclusionRecord,
    TimelinePhase,
    VerificationRecord,
)
from app.models.enums import (
    AlertSeverity,
    CredentialingPhase,
    CredentialingStatus,
    PhaseStatus,
    ProfileStatus,
    VerificationStatus,
    VerificationType,
)
from app.services.credentialing.workflow import PHASE_ORDER, parse_phase
from app.utils.errors import InvalidPhaseError, NotFoundError, ProviderNotFoundError
from tests.factories import (
    ApprovedProviderFactory,
    CredentialingAlertFactory,
    ExclusionRecordFactory,
    ProviderFactory,
)
from tests.utils.upstream import NPI_HOST, SAM_HOST, npi_individual


def _alerts(db_session, provider_id):
    return db_session.query(CredentialingAlert).filter(CredentialingAlert.provider_id == provider_id).all()


def _verifications(db_session, provider_id, verification_type):
    return (
        db_session.query(VerificationRecord)
        .filter(
            VerificationRecord.provider_id == provider_id,
            VerificationRecord.verification_type == verification_type,
        )
        .all()
    )


@pytest.mark.unit
class TestParsePhase:
    def test_known_phase(self):
        assert parse_phase("oig_sam_check") == CredentialingPhase.OIG_SAM_CHECK
        assert parse_phase(" Final_Review ") == CredentialingPhase.FINAL_REVIEW
        assert parse_phase(CredentialingPhase.DOCUMENT_REVIEW) == CredentialingPhase.DOCUMENT_REVIEW

    def test_unknown_phase(self):
        with pytest.raises(InvalidPhaseError) as exc_info:
            parse_phase("dental_exam")

        assert exc_info.value.status_code == 400
        assert "npi_verification" in exc_info.value.details["allowed"]


@pytest.mark.unit
class TestInitializeCredentialing:
    """Tests for initialize_credentialing."""

    def test_creates_eight_pending_phases(self, service, db_session, sample_provider):
        assert service.initialize_credentialing(sample_provider.id) is True

        phases = db_session.query(TimelinePhase).filter(TimelinePhase.provider_id == sample_provider.id).all()
        assert sorted(p.phase for p in phases) == sorted(PHASE_ORDER)
        assert all(p.status == PhaseStatus.PENDING for p in phases)

        db_session.refresh(sample_provider)
        assert sample_provider.credentialing_status == CredentialingStatus.DOCUMENTS_PENDING
        assert sample_provider.credentialing_started_at is not None

        note = db_session.query(CredentialingNote).one()
        assert note.note_type == "system"
        assert note.note.startswith("Credentialing process initialized.")

    def test_second_call_changes_nothing(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)

        assert service.initialize_credentialing(sample_provider.id) is False
        assert db_session.query(TimelinePhase).count() == 8
        assert db_session.query(CredentialingNote).count() == 1

    def test_unknown_provider(self, service):
        with pytest.raises(ProviderNotFoundError):
            service.initialize_credentialing(9999)


@pytest.mark.unit
class TestRunAutomatedVerifications:
    """Tests for run_automated_verifications."""

    def test_clean_provider_moves_to_under_review(self, service, db_session, upstream):
        provider = ProviderFactory(first_name="Jane", last_name="Doe", npi_number="1234567893")
        upstream.add_npi(npi_individual("1234567893"))
        service.initialize_credentialing(provider.id)

        results = service.run_automated_verifications(provider.id)

        assert results == {"npi": True, "dea": False, "oig": True, "sam": False}
        db_session.refresh(provider)
        assert provider.credentialing_status == CredentialingStatus.UNDER_REVIEW
        assert _alerts(db_session, provider.id) == []

        npi_record = _verifications(db_session, provider.id, VerificationType.NPI)[0]
        assert npi_record.status == VerificationStatus.VERIFIED
        assert npi_record.verified_by == "automated"
        assert npi_record.verification_source == "CMS NPI Registry API"
        assert json.loads(npi_record.verification_data)["npi_number"] == "1234567893"

        oig_record = _verifications(db_session, provider.id, VerificationType.OIG)[0]
        assert oig_record.status == VerificationStatus.VERIFIED
        expected_recheck = datetime.now() + timedelta(days=service.settings.exclusion_recheck_days)
        assert abs((oig_record.next_check_date - expected_recheck).total_seconds()) < 60
        assert _verifications(db_session, provider.id, VerificationType.SAM) == []

    def test_valid_dea_is_recorded(self, service, db_session, sample_provider, upstream):
        upstream.add_npi(npi_individual("1234567893"))

        results = service.run_automated_verifications(sample_provider.id)

        assert results["dea"] is True
        record = _verifications(db_session, sample_provider.id, VerificationType.DEA)[0]
        assert record.verification_source == "DEA Format Validation"
        assert record.notes.startswith("DEA format validated")

    def test_npi_failure_is_a_warning_and_holds_status(self, service, db_session):
        provider = ProviderFactory(npi_number="1234567893")
        service.initialize_credentialing(provider.id)

        results = service.run_automated_verifications(provider.id)

        assert results["npi"] is False
        assert results["oig"] is True
        alerts = _alerts(db_session, provider.id)
        assert [a.alert_type for a in alerts] == ["npi_verification_failed"]
        assert alerts[0].severity == AlertSeverity.WARNING
        assert alerts[0].message == "NPI verification failed: NPI number not found in registry"
        db_session.refresh(provider)
        assert provider.credentialing_status == CredentialingStatus.DOCUMENTS_PENDING
        assert provider.profile_status == ProfileStatus.PENDING

    def test_npi_outage_does_not_block_other_checks(self, service, db_session, upstream):
        provider = ProviderFactory(npi_number="1234567893", dea_number=None)
        upstream.failures[NPI_HOST] = 503

        results = service.run_automated_verifications(provider.id)

        assert results["npi"] is False
        assert results["oig"] is True
        record = _verifications(db_session, provider.id, VerificationType.NPI)[0]
        assert record.status == VerificationStatus.FAILED
        assert "NPI Registry API error" in record.notes

    def test_dea_failure_is_a_warning(self, service, db_session):
        provider = ProviderFactory(last_name="Smith", dea_number="CB1234564")

        results = service.run_automated_verifications(provider.id)

        assert results["dea"] is False
        alert = _alerts(db_session, provider.id)[0]
        assert alert.alert_type == "dea_validation_failed"
        assert alert.severity == AlertSeverity.WARNING
        assert alert.message == (
            "DEA validation failed: Second letter (B) should match first letter of last name (S), "
            "Invalid check digit. Expected 3, got 4"
        )

    def test_oig_match_is_a_hard_stop(self, service, db_session, upstream, sent_alerts):
        provider = ProviderFactory(first_name="John", last_name="Smith", npi_number="1234567893")
        upstream.add_npi(npi_individual("1234567893", first_name="JOHN", last_name="SMITH"))
        ExclusionRecordFactory(first_name="JOHN", last_name="SMITH", npi="1234567893")
        service.initialize_credentialing(provider.id)

        results = service.run_automated_verifications(provider.id)

        assert results["npi"] is True
        assert results["oig"] is False
        db_session.refresh(provider)
        assert provider.profile_status == ProfileStatus.REJECTED
        assert provider.credentialing_status == CredentialingStatus.REJECTED

        critical = [a for a in _alerts(db_session, provider.id) if a.severity == AlertSeverity.CRITICAL]
        assert len(critical) == 1
        assert critical[0].alert_type == "oig_match"
        assert "Type: 1128a1. Date: 20200115." in critical[0].message

        record = _verifications(db_session, provider.id, VerificationType.OIG)[0]
        assert record.status == VerificationStatus.FAILED
        assert record.notes == "EXCLUDED: 1128a1 - 20200115"

        assert len(sent_alerts) == 1
        assert sent_alerts[0]["alert_type"] == "OIG Exclusion Match"
        assert sent_alerts[0]["severity"] == "critical"
        assert "credentialing@test.example" in sent_alerts[0]["action_required"]

    def test_notification_failure_does_not_undo_rejection(self, container, db_session):
        from app.utils.notifications import AlertNotifier

        def broken(*args):
            raise ConnectionError("smtp down")

        container.notifier = AlertNotifier(send_alert=broken, background=False)
        service = container.credentialing_service(db_session)
        provider = ProviderFactory(first_name="John", last_name="Smith")
        ExclusionRecordFactory(first_name="JOHN", last_name="SMITH")

        service.run_automated_verifications(provider.id)

        db_session.refresh(provider)
        assert provider.profile_status == ProfileStatus.REJECTED

    def test_rerun_after_rejection_stays_rejected(self, service, db_session):
        provider = ProviderFactory(first_name="John", last_name="Smith")
        ExclusionRecordFactory(first_name="JOHN", last_name="SMITH")
        service.run_automated_verifications(provider.id)

        db_session.query(CredentialingAlert).delete()
        db_session.commit()
        db_session.query(ExclusionRecord).delete()
        db_session.commit()

        results = service.run_automated_verifications(provider.id)

        assert results["oig"] is True
        db_session.refresh(provider)
        assert provider.credentialing_status == CredentialingStatus.REJECTED

    def test_oig_lookup_failure_is_not_a_pass(self, service, db_session, mocker):
        from app.models.enums import MatchConfidence
        from app.services.credentialing.exclusions import OIGExclusionMatch

        provider = ProviderFactory()
        mocker.patch.object(
            service.exclusion_checker,
            "check_oig_exclusion",
            return_value=OIGExclusionMatch(matched=False, confidence=MatchConfidence.LOW),
        )

        results = service.run_automated_verifications(provider.id)

        assert results["oig"] is False
        alert = _alerts(db_session, provider.id)[0]
        assert alert.alert_type == "oig_check_incomplete"
        assert alert.severity == AlertSeverity.WARNING
        db_session.refresh(provider)
        assert provider.profile_status == ProfileStatus.PENDING
        assert provider.credentialing_status == CredentialingStatus.NOT_STARTED

    def test_sam_checked_when_configured(self, sam_container, db_session, upstream):
        service = sam_container.credentialing_service(db_session)
        provider = ProviderFactory()

        results = service.run_automated_verifications(provider.id)

        assert results["sam"] is True
        record = _verifications(db_session, provider.id, VerificationType.SAM)[0]
        assert record.status == VerificationStatus.VERIFIED
        assert record.verification_source == "SAM.gov Exclusions API"
        assert len(upstream.requests_to(SAM_HOST)) == 1

    def test_sam_match_raises_critical_alert(self, sam_container, db_session, upstream, sent_alerts):
        upstream.sam_response = {
            "totalRecords": 1,
            "entityData": [{"exclusionDetails": [{"classificationType": "Individual"}]}],
        }
        service = sam_container.credentialing_service(db_session)
        provider = ProviderFactory()

        results = service.run_automated_verifications(provider.id)

        assert results["sam"] is False
        alert = _alerts(db_session, provider.id)[0]
        assert alert.alert_type == "sam_exclusion"
        assert alert.severity == AlertSeverity.CRITICAL
        assert [s["alert_type"] for s in sent_alerts] == ["SAM Exclusion Match"]
        db_session.refresh(provider)
        assert provider.credentialing_status == CredentialingStatus.NOT_STARTED

    def test_sam_outage_is_recorded(self, sam_container, db_session, upstream):
        upstream.failures[SAM_HOST] = 502
        service = sam_container.credentialing_service(db_session)
        provider = ProviderFactory()

        results = service.run_automated_verifications(provider.id)

        assert results["sam"] is False
        record = _verifications(db_session, provider.id, VerificationType.SAM)[0]
        assert record.status == VerificationStatus.FAILED
        assert [a.alert_type for a in _alerts(db_session, provider.id)] == ["sam_check_incomplete"]

    def test_each_run_appends_records(self, service, db_session):
        provider = ProviderFactory()

        service.run_automated_verifications(provider.id)
        service.run_automated_verifications(provider.id)

        assert len(_verifications(db_session, provider.id, VerificationType.OIG)) == 2


@pytest.mark.unit
class TestCredentialingProgress:
    """Tests for get_credentialing_progress."""

    def test_initial_progress(self, service, sample_provider):
        service.initialize_credentialing(sample_provider.id)

        progress = service.get_credentialing_progress(sample_provider.id)

        assert progress["current_phase"] == "document_review"
        assert progress["credentialing_status"] == "documents_pending"
        assert progress["total_phases"] == 8
        assert progress["completed_phases_count"] == 0
        assert len(progress["pending_phases"]) == 8
        assert progress["days_in_process"] == 0
        assert [t["phase"] for t in progress["timeline"]] == [p.value for p in PHASE_ORDER]
        assert progress["provider_info"]["npi_number"] == "1234567893"

    def test_in_progress_phase_is_current(self, service, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        service.complete_credentialing_phase(sample_provider.id, "document_review")
        progress = service.start_credentialing_phase(sample_provider.id, "background_check")

        assert progress["current_phase"] == "background_check"
        assert progress["in_progress_phases"] == ["background_check"]
        assert progress["completed_phases"] == ["document_review"]

    def test_all_completed_reports_final_review(self, service, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        for phase in PHASE_ORDER:
            progress = service.complete_credentialing_phase(sample_provider.id, phase.value)

        assert progress["current_phase"] == "final_review"
        assert progress["pending_phases"] == []

    def test_verifications_newest_first(self, service, sample_provider, upstream):
        upstream.add_npi(npi_individual("1234567893"))
        service.run_automated_verifications(sample_provider.id)
        service.run_automated_verifications(sample_provider.id)

        progress = service.get_credentialing_progress(sample_provider.id)

        ids = [v["id"] for v in progress["verifications"]]
        assert ids == sorted(ids, reverse=True)
        assert len(ids) == 6

    def test_notes_can_be_left_out(self, service, sample_provider):
        service.run_automated_verifications(sample_provider.id)

        progress = service.get_credentialing_progress(sample_provider.id, include_notes=False)

        assert all(v["notes"] is None for v in progress["verifications"])

    def test_days_in_process(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        sample_provider.credentialing_started_at = datetime.now() - timedelta(days=12, hours=1)
        db_session.commit()

        assert service.get_credentialing_progress(sample_provider.id)["days_in_process"] == 12

    def test_unknown_provider(self, service):
        with pytest.raises(ProviderNotFoundError):
            service.get_credentialing_progress(424242)


@pytest.mark.unit
class TestCompleteCredentialingPhase:
    """Tests for phase completion and auto-approval."""

    def test_all_phases_in_any_order_approves(self, service, db_session, sample_provider, sent_alerts):
        service.initialize_credentialing(sample_provider.id)

        for phase in reversed(PHASE_ORDER):
            service.complete_credentialing_phase(sample_provider.id, phase.value, notes="ok")

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.APPROVED
        assert sample_provider.credentialing_status == CredentialingStatus.APPROVED
        assert sample_provider.credentialing_completed_at is not None
        assert [s["alert_type"] for s in sent_alerts] == ["Credentialing Approved"]

    def test_seven_of_eight_is_not_approved(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)

        for phase in PHASE_ORDER[:-1]:
            service.complete_credentialing_phase(sample_provider.id, phase.value)

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.PENDING
        assert sample_provider.credentialing_status == CredentialingStatus.DOCUMENTS_PENDING
        assert sample_provider.credentialing_completed_at is None

    def test_failed_phase_blocks_until_completed(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        service.fail_credentialing_phase(sample_provider.id, "background_check", notes="record found")
        for phase in PHASE_ORDER:
            if phase != CredentialingPhase.BACKGROUND_CHECK:
                service.complete_credentialing_phase(sample_provider.id, phase.value)

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.PENDING
        progress = service.get_credentialing_progress(sample_provider.id)
        assert progress["failed_phases"] == ["background_check"]

        service.complete_credentialing_phase(sample_provider.id, "background_check", notes="cleared")

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.APPROVED

    def test_completion_records_notes_and_timestamps(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)

        progress = service.complete_credentialing_phase(sample_provider.id, "document_review", notes="All uploaded")

        entry = progress["timeline"][0]
        assert entry["status"] == "completed"
        assert entry["notes"] == "All uploaded"
        assert entry["completed_at"] is not None
        assert entry["started_at"] is not None

    def test_recompleting_keeps_timestamp(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        first = service.complete_credentialing_phase(sample_provider.id, "document_review")
        second = service.complete_credentialing_phase(sample_provider.id, "document_review", notes="again")

        assert first["timeline"][0]["completed_at"] == second["timeline"][0]["completed_at"]
        assert second["timeline"][0]["notes"] == "again"

    def test_rejected_provider_is_never_approved(self, service, db_session):
        provider = ProviderFactory(first_name="John", last_name="Smith")
        ExclusionRecordFactory(first_name="JOHN", last_name="SMITH")
        service.initialize_credentialing(provider.id)
        service.run_automated_verifications(provider.id)

        for phase in PHASE_ORDER:
            service.complete_credentialing_phase(provider.id, phase.value)

        db_session.refresh(provider)
        assert provider.profile_status == ProfileStatus.REJECTED

    def test_unresolved_critical_alert_blocks_approval(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        alert = CredentialingAlertFactory(provider=sample_provider, severity=AlertSeverity.CRITICAL)
        for phase in PHASE_ORDER:
            service.complete_credentialing_phase(sample_provider.id, phase.value)

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.PENDING

        service.resolve_alert(alert.id, "admin@example.com")
        service.complete_credentialing_phase(sample_provider.id, "final_review")

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.APPROVED

    def test_warning_alerts_do_not_block(self, service, db_session, sample_provider):
        service.initialize_credentialing(sample_provider.id)
        CredentialingAlertFactory(provider=sample_provider, severity=AlertSeverity.WARNING)
        for phase in PHASE_ORDER:
            service.complete_credentialing_phase(sample_provider.id, phase.value)

        db_session.refresh(sample_provider)
        assert sample_provider.profile_status == ProfileStatus.APPROVED

    def test_uninitialized_provider(self, service, sample_provider):
        with pytest.raises(NotFoundError):
            service.complete_credentialing_phase(sample_provider.id, "document_review")

    def test_unknown_phase(self, service, sample_provider):
        service.initialize_credentialing(sample_provider.id)

        with pytest.raises(InvalidPhaseError):
            service.complete_credentialing_phase(sample_provider.id, "not_a_phase")


@pytest.mark.unit
class TestExpiringCredentials:
    """Tests for check_expiring_credentials."""

    def test_severity_by_days_left(self, service, db_session):
        soon = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=10, hours=1))
        later = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=45, hours=1))
        ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=90))

        result = service.check_expiring_credentials()

        assert result == {"checked": 3, "alerts_created": 2, "suppressed": 0}
        soon_alert = _alerts(db_session, soon.id)[0]
        assert soon_alert.severity == AlertSeverity.WARNING
        assert soon_alert.alert_type == "license_expiring"
        assert soon_alert.message.startswith("License expires in 10 days (")
        assert soon_alert.message.endswith("Provider needs to renew.")
        assert _alerts(db_session, later.id)[0].severity == AlertSeverity.INFO

    def test_dea_expiration(self, service, db_session):
        provider = ApprovedProviderFactory(dea_expiration=datetime.now() + timedelta(days=20, hours=1))

        service.check_expiring_credentials()

        alert = _alerts(db_session, provider.id)[0]
        assert alert.alert_type == "dea_expiring"
        assert alert.message.startswith("DEA registration expires in 20 days")

    def test_only_approved_providers(self, service, db_session):
        ProviderFactory(license_expiration=datetime.now() + timedelta(days=10))

        assert service.check_expiring_credentials()["checked"] == 0

    def test_repeat_runs_do_not_duplicate(self, service, db_session):
        provider = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=10))

        service.check_expiring_credentials()
        second = service.check_expiring_credentials()

        assert second["alerts_created"] == 0
        assert second["suppressed"] == 1
        assert len(_alerts(db_session, provider.id)) == 1

    def test_info_alert_escalates_to_warning(self, service, db_session):
        provider = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=45, hours=1))
        first = service.check_expiring_credentials()

        provider.license_expiration = datetime.now() + timedelta(days=20, hours=1)
        db_session.commit()
        second = service.check_expiring_credentials()
        third = service.check_expiring_credentials()

        assert first["alerts_created"] == 1
        assert second == {"checked": 1, "alerts_created": 1, "suppressed": 0}
        assert third == {"checked": 1, "alerts_created": 0, "suppressed": 1}
        severities = sorted(a.severity.value for a in _alerts(db_session, provider.id))
        assert severities == ["info", "warning"]

    def test_resolved_alert_allows_a_new_one(self, service, db_session):
        provider = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=10))
        service.check_expiring_credentials()
        service.resolve_alert(_alerts(db_session, provider.id)[0].id, "admin")

        assert service.check_expiring_credentials()["alerts_created"] == 1


@pytest.mark.unit
class TestMaintenanceJobs:
    """Tests for lapsed licenses, reminders and the weekly report."""

    def test_expire_lapsed_licenses(self, service, db_session):
        lapsed = ApprovedProviderFactory(license_expiration=datetime.now() - timedelta(days=1))
        current = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=100))

        result = service.expire_lapsed_licenses()

        assert result == {"checked": 2, "deactivated": 1}
        db_session.refresh(lapsed)
        db_session.refresh(current)
        assert lapsed.profile_status == ProfileStatus.INACTIVE
        assert lapsed.credentialing_status == CredentialingStatus.REJECTED
        assert current.profile_status == ProfileStatus.APPROVED
        alert = _alerts(db_session, lapsed.id)[0]
        assert alert.alert_type == "license_expired"
        assert alert.severity == AlertSeverity.CRITICAL

    def test_reminders_on_configured_days(self, service, sent_alerts):
        provider = ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=30))
        ApprovedProviderFactory(license_expiration=datetime.now() + timedelta(days=31))

        result = service.send_expiration_reminders()

        assert result == {"checked": 2, "reminders_sent": 1}
        assert sent_alerts[0]["provider_id"] == provider.id
        assert sent_alerts[0]["alert_type"] == "License Expiring"
        assert "expires in 30 days" in sent_alerts[0]["message"]

    def test_weekly_report(self, service):
        ProviderFactory.create_batch(2)
        approved = ApprovedProviderFactory()
        CredentialingAlertFactory(provider=approved, severity=AlertSeverity.CRITICAL)
        CredentialingAlertFactory(provider=approved, severity=AlertSeverity.INFO)
        CredentialingAlertFactory(provider=approved, resolved=True)

        report = service.weekly_credentialing_report()

        assert report["by_status"]["not_started"] == 2
        assert report["by_status"]["approved"] == 1
        assert report["by_status"]["rejected"] == 0
        assert report["unresolved_alerts"] == 2
        assert report["critical_alerts"] == 1


@pytest.mark.unit
class TestAlerts:
    """Tests for listing and resolving alerts."""

    def test_list_unresolved_by_default(self, service, sample_provider):
        CredentialingAlertFactory(provider=sample_provider)
        CredentialingAlertFactory(provider=sample_provider, resolved=True)

        alerts = service.list_alerts()

        assert len(alerts) == 1
        assert alerts[0]["resolved"] is False

    def test_filters(self, service, sample_provider):
        other = ProviderFactory()
        CredentialingAlertFactory(provider=sample_provider, severity=AlertSeverity.CRITICAL)
        CredentialingAlertFactory(provider=sample_provider, severity=AlertSeverity.INFO)
        CredentialingAlertFactory(provider=other, severity=AlertSeverity.CRITICAL)

        assert len(service.list_alerts(provider_id=sample_provider.id)) == 2
        assert len(service.list_alerts(severity="critical")) == 2
        assert len(service.list_alerts(resolved=None, limit=1)) == 1

    def test_resolve(self, service, sample_provider):
        alert = CredentialingAlertFactory(provider=sample_provider)

        result = service.resolve_alert(alert.id, "admin@example.com")

        assert result["resolved"] is True
        assert result["resolved_by"] == "admin@example.com"
        assert result["resolved_at"] is not None

    def test_resolve_is_idempotent(self, service, sample_provider):
        alert = CredentialingAlertFactory(provider=sample_provider)
        first = service.resolve_alert(alert.id, "first")
        second = service.resolve_alert(alert.id, "second")

        assert second["resolved_by"] == "first"
        assert first["resolved_at"] == second["resolved_at"]

    def test_resolve_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.resolve_alert(12345, "admin")
