"""Sentry error tracking configuration."""
import os
from typing import Optional, Dict, Any
from pydantic import Field
from pydantic_settings import BaseSettings

from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SENSITIVE_HEADERS = "authorization,cookie,x-api-key,x-auth-token,x-access-token"
# DEA numbers, dates of birth and the SAM key must never leave the process
DEFAULT_SENSITIVE_KEYS = "password,token,secret,api_key,ssn,dob,dea_number,phi"


class SentrySettings(BaseSettings):
    """Sentry configuration settings."""

    dsn: Optional[str] = Field(None, alias="SENTRY_DSN")
    environment: str = Field("development", alias="SENTRY_ENVIRONMENT")
    release: Optional[str] = Field(None, alias="SENTRY_RELEASE")
    traces_sample_rate: float = Field(0.1, alias="SENTRY_TRACES_SAMPLE_RATE")
    send_default_pii: bool = Field(False, alias="SENTRY_SEND_DEFAULT_PII")
    enable_before_send_filter: bool = Field(True, alias="SENTRY_ENABLE_BEFORE_SEND_FILTER")

    sensitive_headers: str = Field(DEFAULT_SENSITIVE_HEADERS, alias="SENTRY_SENSITIVE_HEADERS")
    sensitive_keys: str = Field(DEFAULT_SENSITIVE_KEYS, alias="SENTRY_SENSITIVE_KEYS")

    # Alert configuration
    enable_alerts: bool = Field(True, alias="SENTRY_ENABLE_ALERTS")
    alert_on_errors: bool = Field(True, alias="SENTRY_ALERT_ON_ERRORS")
    alert_on_warnings: bool = Field(False, alias="SENTRY_ALERT_ON_WARNINGS")

    enable_tracing: bool = Field(True, alias="SENTRY_ENABLE_TRACING")
    enable_celery_integration: bool = Field(True, alias="SENTRY_ENABLE_CELERY_INTEGRATION")
    enable_sqlalchemy_integration: bool = Field(True, alias="SENTRY_ENABLE_SQLALCHEMY_INTEGRATION")
    # NPI, OIG and SAM requests as breadcrumbs and spans
    enable_httpx_integration: bool = Field(True, alias="SENTRY_ENABLE_HTTPX_INTEGRATION")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


settings = SentrySettings()


def init_sentry() -> None:
    """
    Initialize Sentry error tracking.

    Called from `app/core/setup.py` for the API and from `app/config/celery.py`
    for workers. Without `SENTRY_DSN` Sentry stays disabled and errors are only
    logged locally. Initialization is skipped when TESTING=true.
    """
    if not settings.dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return

    if os.getenv("TESTING") == "true":
        logger.info("Skipping Sentry initialization in test environment")
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.celery import CeleryIntegration
        from sentry_sdk.integrations.httpx import HttpxIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        integrations = []
        if settings.enable_celery_integration:
            integrations.append(CeleryIntegration())
        if settings.enable_sqlalchemy_integration:
            integrations.append(SqlalchemyIntegration())
        if settings.enable_httpx_integration:
            integrations.append(HttpxIntegration())

        # Log records become breadcrumbs only; errors are captured explicitly
        integrations.append(LoggingIntegration(level=None, event_level=None))

        sentry_sdk.init(
            dsn=settings.dsn,
            environment=settings.environment,
            release=settings.release,
            traces_sample_rate=settings.traces_sample_rate if settings.enable_tracing else 0.0,
            send_default_pii=settings.send_default_pii,
            integrations=integrations,
            before_send=filter_sensitive_data if settings.enable_before_send_filter else None,
        )

        logger.info(
            "Sentry initialized",
            environment=settings.environment,
            release=settings.release,
            tracing_enabled=settings.enable_tracing,
        )
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e), exc_info=True)
        raise


def _split_setting(value: str) -> list:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def filter_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Strip credentials and provider identifiers from Sentry events.

    Removes sensitive request headers, reduces user context to id/username and
    drops extra-context keys matching `SENTRY_SENSITIVE_KEYS` (substring,
    case-insensitive).

    Args:
        event: The Sentry event dictionary
        hint: Additional context about the event

    Returns:
        The filtered event
    """
    sensitive_headers = _split_setting(settings.sensitive_headers)
    sensitive_keys = _split_setting(settings.sensitive_keys)

    headers = event.get("request", {}).get("headers")
    if headers:
        for header_key in [h for h in headers if h.lower() in sensitive_headers]:
            headers.pop(header_key, None)

    if "user" in event:
        event["user"] = {
            "id": event["user"].get("id"),
            "username": event["user"].get("username"),
        }

    extra = event.get("extra")
    if extra:
        for key in [k for k in extra if any(s in k.lower() for s in sensitive_keys)]:
            extra.pop(key, None)

    return event


def _configure_sentry_scope(
    scope,
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> None:
    if context:
        for key, value in context.items():
            scope.set_context(key, value if isinstance(value, dict) else {"value": value})

    if tags:
        for key, value in tags.items():
            scope.set_tag(key, value)


def capture_exception(
    exception: Exception,
    level: str = "error",
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture an exception to Sentry with additional context.

    Args:
        exception: The exception to capture
        level: Severity level (debug, info, warning, error, fatal)
        context: Additional context dictionary
        tags: Tags to attach to the event

    Returns:
        Event ID if Sentry is configured, None otherwise
    """
    try:
        import sentry_sdk

        with sentry_sdk.new_scope() as scope:
            scope.level = level
            _configure_sentry_scope(scope, context, tags)
            return sentry_sdk.capture_exception(exception)
    except Exception as e:
        logger.error("Failed to capture exception to Sentry", error=str(e), exc_info=True)
        raise


def capture_message(
    message: str,
    level: str = "info",
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture a message to Sentry.

    Used for compliance findings that operators must see even though they are
    not exceptions (OIG/SAM matches during the monthly sweep).
    """
    try:
        import sentry_sdk

        with sentry_sdk.new_scope() as scope:
            _configure_sentry_scope(scope, context, tags)
            return sentry_sdk.capture_message(message, level=level.lower())
    except Exception as e:
        logger.error("Failed to capture message to Sentry", error=str(e), exc_info=True)
        raise


def add_breadcrumb(
    message: str,
    category: str = "default",
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to Sentry.

    Args:
        message: Breadcrumb message
        category: Breadcrumb category
        level: Severity level (debug, info, warning, error, fatal)
        data: Additional data dictionary
    """
    import sentry_sdk

    sentry_sdk.add_breadcrumb(
        message=message,
        category=category,
        level=level,
        data=data or {},
    )
