"""Pytest configuration and shared fixtures."""
import os
from typing import Generator, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables BEFORE any app imports
os.environ["TESTING"] = "true"
os.environ["ENVIRONMENT"] = "test"  # Set to test to avoid production validation
os.environ["DATABASE_URL"] = os.getenv(
    "TEST_DATABASE_URL", "sqlite:///./test.db"
)
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
# Real registries must never be hit from tests
os.environ.pop("SAM_API_KEY", None)

from fastapi.testclient import TestClient

from app.config.credentialing import CredentialingSettings
from app.config.database import Base, get_db
from app.main import app
from app.models.database import Provider
from app.services.credentialing.container import CredentialingContainer, get_container
from app.utils.notifications import AlertNotifier


from tests.factories import (
    ApprovedProviderFactory,
    CredentialingAlertFactory,
    ExclusionRecordFactory,
    ProviderFactory,
    TimelinePhaseFactory,
    VerificationRecordFactory,
)
from tests.utils.upstream import StubUpstream

ALL_FACTORIES = (
    ProviderFactory,
    ApprovedProviderFactory,
    TimelinePhaseFactory,
    VerificationRecordFactory,
    CredentialingAlertFactory,
    ExclusionRecordFactory,
)


# Test database setup
@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session with transaction rollback."""
    # Use SQLite in-memory database for tests
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(test_db: Session) -> Generator[Session, None, None]:
    """Provide a database session for tests, shared with the factories."""
    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = test_db

    yield test_db
    # Clean up after each test
    test_db.rollback()


@pytest.fixture(scope="function")
def override_get_db(db_session: Session):
    """Override the get_db dependency."""
    def _get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close in tests

    return _get_db


# External registries
@pytest.fixture(scope="function")
def upstream() -> StubUpstream:
    """Canned NPI Registry, OIG LEIE and SAM.gov responses."""
    return StubUpstream()


@pytest.fixture(scope="function")
def settings() -> CredentialingSettings:
    """Credentialing settings with SAM disabled and a single-threaded sweep."""
    return CredentialingSettings(
        sam_api_key=None,
        exclusion_sweep_concurrency=1,
        credentialing_contact_email="credentialing@test.example",
    )


@pytest.fixture(scope="function")
def sam_settings(settings: CredentialingSettings) -> CredentialingSettings:
    """Settings with a SAM.gov key configured."""
    return settings.model_copy(update={"sam_api_key": "test-sam-key"})


@pytest.fixture(scope="function")
def sent_alerts() -> List[dict]:
    """Notifications delivered during the test, in order."""
    return []


@pytest.fixture(scope="function")
def notifier(sent_alerts: List[dict]) -> AlertNotifier:
    """Notifier that records deliveries inline instead of logging them."""
    def _record(provider_id, alert_type, message, severity, action_required=None):
        sent_alerts.append(
            {
                "provider_id": provider_id,
                "alert_type": alert_type,
                "message": message,
                "severity": severity,
                "action_required": action_required,
            }
        )
        return True

    return AlertNotifier(send_alert=_record, background=False)


def _build_container(settings, upstream, notifier, db_session):
    return CredentialingContainer(
        settings=settings,
        client=upstream.client(),
        notifier=notifier,
        session_factory=lambda: db_session,
    )


@pytest.fixture(scope="function")
def container(settings, upstream, notifier, db_session) -> Generator[CredentialingContainer, None, None]:
    """Container wired to the stubbed registries and the test session."""
    built = _build_container(settings, upstream, notifier, db_session)
    yield built
    built.close()


@pytest.fixture(scope="function")
def sam_container(sam_settings, upstream, notifier, db_session) -> Generator[CredentialingContainer, None, None]:
    built = _build_container(sam_settings, upstream, notifier, db_session)
    yield built
    built.close()


@pytest.fixture(scope="function")
def service(container: CredentialingContainer, db_session: Session):
    """CredentialingService bound to the test session."""
    return container.credentialing_service(db_session)


@pytest.fixture(scope="function")
def checker(container: CredentialingContainer, db_session: Session):
    """ExclusionChecker bound to the test session."""
    return container.exclusion_checker(db_session)


@pytest.fixture(scope="function")
def client(override_get_db, container) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_container] = lambda: container
    # Set raise_server_exceptions=False so that 500 errors return responses instead of raising
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# Test data fixtures
@pytest.fixture
def sample_provider(db_session: Session) -> Provider:
    """Provider with a valid NPI and a DEA number matching the last name."""
    provider = Provider(
        first_name="Jane",
        last_name="Doe",
        email="jane.doe@example.com",
        npi_number="1234567893",
        dea_number="AD1234563",
        license_number="A12345",
        license_state="CA",
        license_type="MD",
    )
    db_session.add(provider)
    db_session.commit()
    db_session.refresh(provider)
    return provider
