"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from survey_service.models.database import (
    Base,
    engine,
    SessionLocal,
    StoreNotConfiguredError,
    get_db,
    init_db,
)
from survey_service.models.question import Question
from survey_service.models.response import SurveyResponse
from survey_service.models.report import Report
from survey_service.models.user import UserAccount

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "StoreNotConfiguredError",
    "get_db",
    "init_db",
    "Question",
    "SurveyResponse",
    "Report",
    "UserAccount",
]
