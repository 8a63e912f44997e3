"""
Federal exclusion screening: OIG LEIE and SAM.gov.

Healthcare organizations must not employ or contract with excluded
individuals. The OIG List of Excluded Individuals/Entities is downloaded
monthly into the oig_exclusions table and matched locally; SAM.gov is queried
live when an API key is configured.

- OIG LEIE: https://oig.hhs.gov/exclusions/
- SAM.gov exclusions API: https://open.gsa.gov/api/exclusions-api/
"""
import io
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import httpx
import pandas as pd
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config.credentialing import CredentialingSettings, get_credentialing_settings
from app.config.sentry import capture_message, settings as sentry_settings
from app.models.core import Provider
from app.models.database import ExclusionRecord
from app.models.enums import AlertSeverity, AlertType, MatchConfidence, ProfileStatus
from app.services.credentialing.records import add_alert
from app.utils.errors import ExclusionDatasetError
from app.utils.logger import bind_provider_context, get_logger
from app.utils.notifications import AlertNotifier

logger = get_logger(__name__)

OIG_SOURCE = "OIG LEIE Database"
SAM_SOURCE = "SAM.gov Exclusions API"

# LEIE CSV header -> ExclusionRecord column
OIG_COLUMN_MAP = {
    "LASTNAME": "last_name",
    "FIRSTNAME": "first_name",
    "MIDNAME": "middle_name",
    "BUSNAME": "business_name",
    "GENERAL": "general",
    "SPECIALTY": "specialty",
    "NPI": "npi",
    "DOB": "dob",
    "ADDRESS": "address",
    "CITY": "city",
    "STATE": "state",
    "ZIP": "zip",
    "EXCLTYPE": "excl_type",
    "EXCLDATE": "excl_date",
    "REINDATE": "rein_date",
    "WAIVERDATE": "waiver_date",
    "WAIVERSTATE": "waiver_state",
}
REQUIRED_OIG_COLUMNS = ("last_name", "first_name")

# The LEIE publishes zero-filled placeholders for missing NPIs and dates
_BLANK_VALUES = {"", "0", "00000000", "0000000000"}
_DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d", "%m/%d/%Y")


class ExclusionDetails(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    npi: Optional[str] = None
    exclusion_type: str = "Unknown"
    exclusion_date: str = "Unknown"
    reinstatement_date: Optional[str] = None
    state: Optional[str] = None
    specialty: Optional[str] = None


class OIGExclusionMatch(BaseModel):
    """
    Result of an OIG lookup.

    `matched` means currently excluded. A reinstated record comes back with
    matched=False and the historical `exclusion` attached. LOW confidence means
    the lookup itself failed and the provider was not actually screened.
    """

    matched: bool
    confidence: MatchConfidence
    matched_on: List[str] = Field(default_factory=list)
    exclusion: Optional[ExclusionDetails] = None

    @property
    def screened(self) -> bool:
        return self.confidence != MatchConfidence.LOW


class SAMExclusionResult(BaseModel):
    """
    Result of a SAM.gov lookup.

    `checked=False` means the check did not run: no API key is configured
    (expected on free deployments) or the API call failed (`error` is set).
    """

    excluded: bool = False
    checked: bool = False
    entity_name: Optional[str] = None
    exclusion_type: Optional[str] = None
    active_date: Optional[str] = None
    termination_date: Optional[str] = None
    error: Optional[str] = None


def parse_exclusion_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an LEIE date (YYYYMMDD); blanks and zero placeholders return None."""
    if value is None:
        return None
    value = str(value).strip()
    if value in _BLANK_VALUES:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    logger.warning("Unparseable exclusion date", value=value)
    return None


def is_currently_excluded(record: ExclusionRecord, as_of: Optional[datetime] = None) -> bool:
    """An exclusion is active until its reinstatement date has passed."""
    reinstated = parse_exclusion_date(record.rein_date)
    if reinstated is None:
        return True
    return reinstated > (as_of or datetime.now())


def parse_oig_csv(csv_text: str) -> List[Dict[str, Optional[str]]]:
    """
    Parse the LEIE CSV into ExclusionRecord column mappings.

    Columns are matched by header name; unknown columns (e.g. UPIN) are
    dropped. Values are stripped, and empty strings become None except for
    the name columns, which are stored as "" when absent.
    """
    frame = pd.read_csv(
        io.StringIO(csv_text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    frame.columns = [str(column).strip().upper() for column in frame.columns]
    if "LASTNAME" not in frame.columns or "FIRSTNAME" not in frame.columns:
        raise ValueError("OIG CSV is missing the LASTNAME/FIRSTNAME columns")
    if frame.empty:
        return []
    frame = frame[[column for column in frame.columns if column in OIG_COLUMN_MAP]]
    frame = frame.rename(columns=OIG_COLUMN_MAP)
    frame = frame.apply(lambda column: column.str.strip())

    records = []
    for row in frame.to_dict(orient="records"):
        record = {column: (value or None) for column, value in row.items()}
        for column in REQUIRED_OIG_COLUMNS:
            record[column] = record.get(column) or ""
        if record.get("npi") in _BLANK_VALUES:
            record["npi"] = None
        records.append(record)
    return records


class ExclusionChecker:
    """
    OIG and SAM screening for one database session.

    Args:
        db: Session used for lookups and, in the monthly sweep, for alerts and
            status changes
        settings: Credentialing settings (URLs, key, batch size)
        client: Shared httpx client
        notifier: Optional notifier; sweep matches are dispatched through it
        session_factory: Needed only for a concurrent sweep, where each worker
            opens its own session
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[CredentialingSettings] = None,
        client: Optional[httpx.Client] = None,
        notifier: Optional[AlertNotifier] = None,
        session_factory: Optional[sessionmaker] = None,
    ):
        self.db = db
        self.settings = settings or get_credentialing_settings()
        self.client = client or httpx.Client(timeout=self.settings.http_timeout)
        self.notifier = notifier
        self.session_factory = session_factory

    def update_oig_database(self) -> Dict[str, int]:
        """
        Replace the local OIG table with the latest LEIE snapshot.

        The delete and every batch insert share one transaction, so readers see
        either the old snapshot or the new one. Each batch runs in a savepoint;
        a failed batch is rolled back, logged and counted without stopping the
        rest of the import.

        Returns:
            {"imported": rows inserted, "errors": rows in failed batches}

        Raises:
            ExclusionDatasetError: The CSV could not be downloaded or parsed
        """
        logger.info("Starting OIG LEIE database update", url=self.settings.oig_csv_url)

        try:
            response = self.client.get(self.settings.oig_csv_url, timeout=self.settings.http_timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExclusionDatasetError(
                f"Failed to download OIG data: {e.response.reason_phrase}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ExclusionDatasetError(f"Failed to download OIG data: {e}") from e

        try:
            records = parse_oig_csv(response.text)
        except (ValueError, pd.errors.ParserError) as e:
            raise ExclusionDatasetError(f"Failed to parse OIG data: {e}") from e

        logger.info("Parsed OIG CSV", records=len(records))

        batch_size = self.settings.oig_import_batch_size
        imported = 0
        errors = 0
        imported_at = datetime.now()

        try:
            deleted = self.db.query(ExclusionRecord).delete(synchronize_session=False)
            logger.info("Cleared old OIG data", deleted=deleted)

            for start in range(0, len(records), batch_size):
                batch = records[start:start + batch_size]
                batch_number = start // batch_size + 1
                for record in batch:
                    record["imported_at"] = imported_at
                try:
                    with self.db.begin_nested():
                        self.db.bulk_insert_mappings(ExclusionRecord, batch)
                    imported += len(batch)
                    logger.debug("Imported OIG batch", batch=batch_number, records=len(batch))
                except SQLAlchemyError as e:
                    errors += len(batch)
                    logger.error("Error importing OIG batch", batch=batch_number, error=str(e))

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("OIG database update complete", imported=imported, errors=errors)
        return {"imported": imported, "errors": errors}

    def check_oig_exclusion(
        self,
        first_name: str,
        last_name: str,
        npi: Optional[str] = None,
    ) -> OIGExclusionMatch:
        """
        Match a provider against the local OIG table.

        An exact case-insensitive name match gives MEDIUM confidence, raised to
        HIGH when the NPI on the record also matches. With no active name match, an
        NPI-only hit is MEDIUM: the same NPI under a different name needs a
        human to look at it. Lookup failures return not-matched with LOW
        confidence.
        """
        try:
            first = (first_name or "").strip().upper()
            last = (last_name or "").strip().upper()
            npi = (npi or "").strip() or None

            name_matches = []
            if first and last:
                name_matches = (
                    self.db.query(ExclusionRecord)
                    .filter(
                        func.upper(ExclusionRecord.first_name) == first,
                        func.upper(ExclusionRecord.last_name) == last,
                    )
                    .order_by(ExclusionRecord.id)
                    .all()
                )

            name_result = None
            if name_matches:
                match = self._best_name_match(name_matches, npi)
                matched_on = ["name"]
                if npi and match.npi == npi:
                    matched_on.append("npi")
                confidence = MatchConfidence.HIGH if "npi" in matched_on else MatchConfidence.MEDIUM
                name_result = self._match_result(match, confidence, matched_on)
                if name_result.matched or not npi:
                    return name_result

            # Reinstated name matches still fall through to an NPI lookup
            if npi:
                npi_matches = (
                    self.db.query(ExclusionRecord)
                    .filter(ExclusionRecord.npi == npi)
                    .order_by(ExclusionRecord.id)
                    .all()
                )
                active = next((r for r in npi_matches if is_currently_excluded(r)), None)
                if active is not None or (npi_matches and name_result is None):
                    logger.warning("OIG NPI match under a different name", npi=npi)
                    return self._match_result(active or npi_matches[0], MatchConfidence.MEDIUM, ["npi"])

            if name_result is not None:
                return name_result
            return OIGExclusionMatch(matched=False, confidence=MatchConfidence.HIGH)
        except Exception as e:
            logger.error("Error checking OIG exclusion", error=str(e))
            return OIGExclusionMatch(matched=False, confidence=MatchConfidence.LOW)

    def _best_name_match(self, matches: List[ExclusionRecord], npi: Optional[str]) -> ExclusionRecord:
        """Prefer the record carrying the provider's NPI, then any active exclusion."""
        if npi:
            for record in matches:
                if record.npi == npi:
                    return record
        for record in matches:
            if is_currently_excluded(record):
                return record
        return matches[0]

    def _match_result(
        self,
        record: ExclusionRecord,
        confidence: MatchConfidence,
        matched_on: List[str],
    ) -> OIGExclusionMatch:
        currently_excluded = is_currently_excluded(record)
        if not currently_excluded:
            logger.info(
                "OIG exclusion found but reinstated",
                exclusion_id=record.id,
                reinstatement_date=record.rein_date,
            )
        return OIGExclusionMatch(
            matched=currently_excluded,
            confidence=confidence,
            matched_on=matched_on,
            exclusion=ExclusionDetails(
                first_name=record.first_name,
                last_name=record.last_name,
                npi=record.npi,
                exclusion_type=record.excl_type or "Unknown",
                exclusion_date=record.excl_date or "Unknown",
                reinstatement_date=record.rein_date,
                state=record.state,
                specialty=record.specialty,
            ),
        )

    def check_sam_exclusion(
        self,
        first_name: str,
        last_name: str,
        api_key: Optional[str] = None,
    ) -> SAMExclusionResult:
        """
        Query SAM.gov for an active exclusion.

        Without an API key the check is skipped and reported as not excluded.
        API failures are also not excluded, with checked=False and `error` set.
        """
        key = api_key or self.settings.sam_api_key
        if not key:
            logger.warning("No SAM.gov API key configured, skipping SAM check")
            return SAMExclusionResult(excluded=False, checked=False)

        try:
            response = self.client.get(
                self.settings.sam_api_url,
                params={"firstName": first_name, "lastName": last_name, "api_key": key},
                timeout=self.settings.http_timeout,
            )
        except httpx.HTTPError as e:
            logger.error("SAM.gov request failed", error=str(e))
            return SAMExclusionResult(excluded=False, checked=False, error=f"SAM API error: {e}")

        if response.is_error:
            logger.error(
                "SAM.gov API error",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
            return SAMExclusionResult(
                excluded=False,
                checked=False,
                error=f"SAM API error: {response.status_code} {response.reason_phrase}",
            )

        try:
            data = response.json()
        except ValueError:
            logger.error("SAM.gov returned invalid JSON")
            return SAMExclusionResult(excluded=False, checked=False, error="SAM API error: invalid response body")

        entities = data.get("entityData") or []
        if not data.get("totalRecords") or not entities:
            return SAMExclusionResult(excluded=False, checked=True)

        entity = entities[0]
        details = (entity.get("exclusionDetails") or [{}])[0]
        return SAMExclusionResult(
            excluded=True,
            checked=True,
            entity_name=entity.get("legalBusinessName") or f"{first_name} {last_name}",
            exclusion_type=details.get("classificationType") or "Unknown",
            active_date=details.get("activeDate"),
            termination_date=details.get("terminationDate"),
        )

    def run_monthly_exclusion_check(
        self,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, int]:
        """
        Re-screen every approved provider against OIG (and SAM when configured).

        Any match creates a critical alert and sets profile_status=inactive
        immediately. Each provider is committed on its own, so an interrupted
        sweep keeps the results already written. `should_stop` is checked
        before each provider.

        Returns:
            {"checked", "matched", "alerts_created", "errors", "interrupted"}
        """
        provider_ids = [
            provider_id
            for (provider_id,) in self.db.query(Provider.id)
            .filter(Provider.profile_status == ProfileStatus.APPROVED)
            .order_by(Provider.id)
            .all()
        ]
        logger.info("Starting monthly exclusion check", providers=len(provider_ids))

        totals = {"checked": 0, "matched": 0, "alerts_created": 0, "errors": 0, "interrupted": False}
        concurrency = self.settings.exclusion_sweep_concurrency

        if concurrency > 1 and self.session_factory is not None:
            outcomes = self._sweep_concurrently(provider_ids, concurrency, should_stop)
        else:
            outcomes = []
            for provider_id in provider_ids:
                if should_stop and should_stop():
                    break
                outcomes.append(self._screen_safely(self.db, provider_id))

        for outcome in outcomes:
            totals["checked"] += 1
            if outcome < 0:
                totals["errors"] += 1
                continue
            totals["alerts_created"] += outcome
            if outcome:
                totals["matched"] += 1

        totals["interrupted"] = totals["checked"] < len(provider_ids)
        if totals["interrupted"]:
            logger.warning("Monthly exclusion check interrupted", **totals)
        else:
            logger.info("Monthly exclusion check complete", **totals)
        return totals

    def _sweep_concurrently(self, provider_ids, concurrency, should_stop) -> List[int]:
        def screen(provider_id):
            if should_stop and should_stop():
                return None
            session = self.session_factory()
            try:
                return self._screen_safely(session, provider_id)
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="exclusion-sweep") as pool:
            results = list(pool.map(screen, provider_ids))
        return [result for result in results if result is not None]

    def _screen_safely(self, db: Session, provider_id: int) -> int:
        """Screen one provider; a database failure is logged and returned as -1."""
        try:
            return self._screen_provider(db, provider_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Exclusion screening failed for provider", provider_id=provider_id, error=str(e))
            return -1

    def _screen_provider(self, db: Session, provider_id: int) -> int:
        """Screen one provider and commit; returns the number of alerts created."""
        checker = self if db is self.db else ExclusionChecker(
            db, self.settings, self.client, self.notifier
        )
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
        if provider is None:
            return 0

        with bind_provider_context(provider_id):
            findings = []
            oig = checker.check_oig_exclusion(
                provider.first_name, provider.last_name, provider.npi_number
            )
            if oig.matched:
                details = oig.exclusion
                findings.append((
                    AlertType.OIG_MATCH,
                    "CRITICAL: Provider appears on OIG Exclusion List. "
                    f"Exclusion Type: {details.exclusion_type}, "
                    f"Exclusion Date: {details.exclusion_date}. "
                    "Immediate action required.",
                ))
            elif not oig.screened:
                logger.warning("OIG check did not run during monthly sweep")

            if self.settings.sam_enabled:
                sam = checker.check_sam_exclusion(provider.first_name, provider.last_name)
                if sam.excluded:
                    findings.append((
                        AlertType.SAM_EXCLUSION,
                        "CRITICAL: Provider appears on SAM.gov Exclusion List. "
                        f"Exclusion Type: {sam.exclusion_type}. "
                        "Immediate action required.",
                    ))

            if not findings:
                return 0

            try:
                for alert_type, message in findings:
                    add_alert(db, provider.id, alert_type, AlertSeverity.CRITICAL, message)
                provider.profile_status = ProfileStatus.INACTIVE
                provider.last_credentialing_update = datetime.now()
                db.commit()
            except Exception:
                db.rollback()
                raise

            finding_types = [alert_type.value for alert_type, _ in findings]
            logger.error("Provider suspended after exclusion match", findings=finding_types)
            if sentry_settings.enable_alerts:
                capture_message(
                    "Provider suspended after exclusion match",
                    level="warning",
                    context={"exclusion": {"provider_id": provider.id, "findings": finding_types}},
                    tags={"component": "exclusion_sweep"},
                )
            if self.notifier is not None:
                for alert_type, message in findings:
                    self.notifier.notify(
                        provider.id,
                        alert_type.value,
                        message,
                        AlertSeverity.CRITICAL.value,
                        f"Contact {self.settings.credentialing_contact_email} immediately.",
                    )
            return len(findings)

    def get_oig_stats(self) -> Dict:
        """Row count and last import time of the OIG table."""
        try:
            total, last_updated = self.db.query(
                func.count(ExclusionRecord.id), func.max(ExclusionRecord.imported_at)
            ).one()
        except SQLAlchemyError as e:
            logger.error("Error getting OIG stats", error=str(e))
            return {"total_exclusions": 0, "last_updated": None}
        return {
            "total_exclusions": total or 0,
            "last_updated": last_updated.isoformat() if last_updated else None,
        }

    def next_check_date(self) -> datetime:
        return datetime.now() + timedelta(days=self.settings.exclusion_recheck_days)
