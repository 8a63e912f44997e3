"""
Process setup that must run before the FastAPI app is created.

Order: load `.env`, start Sentry, configure structlog, then refuse to start on
an insecure CORS configuration. The credentialing configuration is logged so
a missing SAM key is visible at startup rather than only in verification
results.
"""
import os

from dotenv import load_dotenv

from app.config.credentialing import get_credentialing_settings
from app.config.security import validate_security_settings
from app.config.sentry import init_sentry
from app.utils.logger import configure_logging, get_logger


def setup_application() -> None:
    """
    Initialize environment, error tracking, logging and security checks.

    Raises:
        AppError: If security validation fails (prevents app from starting)
    """
    load_dotenv()
    init_sentry()

    production = os.getenv("ENVIRONMENT") == "production"
    configure_logging(
        log_level=os.getenv("LOG_LEVEL", "info"),
        log_format=os.getenv("LOG_FORMAT", "json"),
        log_file=os.getenv("LOG_FILE", "app.log" if production else None),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )
    logger = get_logger(__name__)

    try:
        validate_security_settings()
    except Exception as e:
        logger.critical("Security validation failed - application cannot start", error=str(e))
        raise

    credentialing = get_credentialing_settings()
    logger.info(
        "Credentialing configuration loaded",
        sam_enabled=credentialing.sam_enabled,
        oig_batch_size=credentialing.oig_import_batch_size,
        sweep_concurrency=credentialing.exclusion_sweep_concurrency,
    )
    if not credentialing.sam_enabled:
        logger.warning("SAM_API_KEY not set; SAM exclusion checks are skipped")
