"""
Process-wide credentialing collaborators.

Settings, the HTTP client, the NPI verifier and the notifier are built once
per process; session-bound services (ExclusionChecker, CredentialingService)
are built per session from them.
"""
from functools import lru_cache
from typing import Optional

import httpx
from sqlalchemy.orm import Session, sessionmaker

from app.config.credentialing import CredentialingSettings, get_credentialing_settings
from app.services.credentialing.exclusions import ExclusionChecker
from app.services.credentialing.npi import NPIVerifier
from app.services.credentialing.workflow import CredentialingService
from app.utils.logger import get_logger
from app.utils.notifications import AlertNotifier

logger = get_logger(__name__)


class CredentialingContainer:
    """Holds the shared collaborators and builds session-bound services."""

    def __init__(
        self,
        settings: Optional[CredentialingSettings] = None,
        client: Optional[httpx.Client] = None,
        notifier: Optional[AlertNotifier] = None,
        session_factory: Optional[sessionmaker] = None,
    ):
        self.settings = settings or get_credentialing_settings()
        self.client = client or httpx.Client(
            timeout=self.settings.http_timeout,
            headers={"Accept": "application/json"},
        )
        self.notifier = notifier or AlertNotifier()
        self.session_factory = session_factory
        self.npi_verifier = NPIVerifier(self.settings, self.client)

    def exclusion_checker(self, db: Session) -> ExclusionChecker:
        return ExclusionChecker(
            db,
            settings=self.settings,
            client=self.client,
            notifier=self.notifier,
            session_factory=self.session_factory,
        )

    def credentialing_service(self, db: Session) -> CredentialingService:
        return CredentialingService(
            db,
            npi_verifier=self.npi_verifier,
            exclusion_checker=self.exclusion_checker(db),
            notifier=self.notifier,
            settings=self.settings,
        )

    def close(self) -> None:
        self.client.close()


@lru_cache(maxsize=1)
def get_container() -> CredentialingContainer:
    """Process-wide container; FastAPI routes depend on this and tests override it."""
    from app.config.database import SessionLocal

    logger.info("Building credentialing services")
    return CredentialingContainer(session_factory=SessionLocal)
