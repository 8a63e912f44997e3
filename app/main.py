"""
FastAPI application entry point.

This module handles early initialization and creates the FastAPI application
instance using the application factory pattern.

The application setup is organized into separate modules:
- `app/core/setup.py`: Early initialization (env, Sentry, logging, security)
- `app/core/application.py`: Application factory and configuration
- `app/api/routes/`: Route handlers organized by domain

Run the API with:
    uvicorn app.main:app --host 0.0.0.0 --port 8000

Scheduled jobs run in Celery (see `app/config/celery.py`):
    celery -A app.config.celery worker --beat
"""
from app.core.setup import setup_application
from app.core.application import create_application

# Initialize application environment and configuration
# This must be done before creating the FastAPI app instance
setup_application()

# Create and configure FastAPI application
app = create_application()
