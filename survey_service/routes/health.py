"""Health check endpoint for monitoring and deployment verification.

Reports whether the application is running, whether the survey store answers
a trivial query and which optional integrations are configured.
"""

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from survey_service.config import get_settings
from survey_service.models import database
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status, database state and configured integrations

    Raises:
        HTTPException: 503 if the database is configured but unreachable

    Example response:
        {
            "status": "healthy",
            "database": "connected",
            "admin": "configured",
            "sheets": "not_configured"
        }
    """
    settings = get_settings()
    status = {
        "status": "healthy",
        "database": "not_configured",
        "admin": "configured" if settings.is_admin_configured else "not_configured",
        "sheets": "configured" if settings.is_sheets_configured else "not_configured",
    }

    if database.engine is None:
        return status

    try:
        with database.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable - database connection failed"
        )

    logger.debug("Health check passed")
    status["database"] = "connected"
    return status
