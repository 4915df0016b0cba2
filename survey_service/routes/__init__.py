"""Routes package for FastAPI endpoints.

This package contains the survey, report, admin and health route modules.
"""

from survey_service.routes import admin, health, reports, survey

__all__ = ["admin", "health", "reports", "survey"]
