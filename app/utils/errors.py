"""Custom exception classes and error handling."""
from typing import Optional
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.utils.logger import get_logger
from app.config.sentry import capture_exception, add_breadcrumb, settings

logger = get_logger(__name__)


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or "APP_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="VALIDATION_ERROR",
            details=details or {},
        )


class NotFoundError(AppError):
    """Resource not found error."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message += f" (id: {identifier})"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
        )


class ProviderNotFoundError(NotFoundError):
    """Credentialing operation referenced an unknown provider."""

    def __init__(self, provider_id):
        super().__init__("Provider", str(provider_id))
        self.provider_id = provider_id


class InvalidPhaseError(ValidationError):
    """Unknown credentialing phase name."""

    def __init__(self, phase: str, allowed: Optional[list] = None):
        super().__init__(
            message=f"Unknown credentialing phase: {phase}",
            details={"phase": phase, "allowed": allowed or []},
        )
        self.phase = phase


class ExclusionDatasetError(AppError):
    """The OIG exclusion snapshot could not be downloaded."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="EXCLUSION_DATASET_UNAVAILABLE",
            details=details or {},
        )


def _request_context(request: Request) -> dict:
    """Path, method and (for credentialing routes) the provider being acted on."""
    context = {"path": request.url.path, "method": request.method}
    provider_id = request.path_params.get("provider_id")
    if provider_id is not None:
        context["provider_id"] = provider_id
    return context


def _error_body(code: str, message: str, details=None) -> dict:
    body = {"error": code, "message": message}
    if details is not None:
        body["details"] = details
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Handle application errors.

    Server errors (5xx, e.g. an unreachable OIG download) always go to Sentry
    when alerts are enabled; client errors (unknown provider or phase) only
    with alert_on_errors.
    """
    request_context = _request_context(request)
    is_server_error = exc.status_code >= 500

    add_breadcrumb(
        message=f"Application error: {exc.code}",
        category="error",
        level="error" if is_server_error else "warning",
        data={**request_context, "status_code": exc.status_code},
    )
    logger.warning(
        "Application error",
        error=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        **request_context,
    )

    if settings.enable_alerts and (is_server_error or settings.alert_on_errors):
        capture_exception(
            exc,
            level="error" if is_server_error else "warning",
            context={
                "request": request_context,
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.details,
                    "status_code": exc.status_code,
                },
            },
            tags={"error_type": exc.code, "status_code": str(exc.status_code)},
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors (bad path/query/body values)."""
    request_context = _request_context(request)
    errors = exc.errors()

    add_breadcrumb(
        message="Request validation failed",
        category="validation",
        level="warning",
        data=request_context,
    )
    logger.warning("Validation error", errors=errors, **request_context)

    if settings.enable_alerts and settings.alert_on_warnings:
        capture_exception(
            exc,
            level="warning",
            context={"request": request_context, "validation_errors": errors},
            tags={"error_type": "VALIDATION_ERROR"},
        )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", jsonable_encoder(errors)),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; the response never carries the exception text."""
    request_context = _request_context(request)
    error_type = type(exc).__name__

    add_breadcrumb(
        message=f"Unexpected error: {error_type}",
        category="exception",
        level="error",
        data={**request_context, "error_type": error_type},
    )
    logger.error("Unexpected error", error=str(exc), exc_info=True, **request_context)

    if settings.enable_alerts:
        capture_exception(
            exc,
            level="error",
            context={"request": request_context},
            tags={"error_type": error_type},
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
    )
