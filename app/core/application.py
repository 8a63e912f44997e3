"""
Application factory for the credentialing API.

`create_application()` builds the FastAPI app: CORS middleware, the AppError /
validation / catch-all handlers and the domain routers. Early process setup
(env, Sentry, logging, security checks) lives in `app/core/setup.py`.
"""
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from app.config.database import init_db
from app.config.security import get_cors_headers, get_cors_methods, get_cors_origins
from app.utils.errors import (
    AppError,
    app_error_handler,
    general_exception_handler,
    validation_error_handler,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

OPENAPI_TAGS = [
    {"name": "credentialing", "description": "Eight-phase credentialing workflow and alerts"},
    {"name": "verification", "description": "Stand-alone NPI registry and DEA number checks"},
    {"name": "admin", "description": "Scheduled job triggers and OIG reference data"},
    {"name": "health", "description": "Liveness and dependency status"},
]


def create_lifespan() -> Callable:
    """Lifespan that creates tables on startup and closes the registry client on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting credentialing API")
        await init_db()
        yield
        logger.info("Shutting down credentialing API")
        from app.services.credentialing.container import get_container

        # Only close a container that was actually built
        if get_container.cache_info().currsize:
            get_container().close()

    return lifespan


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=get_cors_methods(),
        allow_headers=get_cors_headers(),
    )
    logger.info("Middleware configured", cors_origins=get_cors_origins())


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register error handlers, most specific first.

    1. AppError (ProviderNotFoundError, InvalidPhaseError, ExclusionDatasetError, ...)
    2. RequestValidationError
    3. Exception (catch-all)
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def register_routes(app: FastAPI) -> None:
    """Mount the root endpoint and the versioned domain routers."""
    from app.api.routes import admin, credentialing, health, root, verification

    app.include_router(root.router, tags=["root"])
    for module, tag in (
        (health, "health"),
        (credentialing, "credentialing"),
        (verification, "verification"),
        (admin, "admin"),
    ):
        app.include_router(module.router, prefix=API_PREFIX, tags=[tag])

    logger.info("Routes registered", prefix=API_PREFIX)


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Provider Credentialing Service",
        description=(
            "Automated provider credentialing: NPI registry lookup, DEA number "
            "validation and OIG/SAM exclusion screening"
        ),
        version="1.0.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=create_lifespan(),
    )

    setup_middleware(app)
    setup_error_handlers(app)
    register_routes(app)

    return app
