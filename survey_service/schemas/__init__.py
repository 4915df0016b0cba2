"""Pydantic schemas for data validation.

This package contains the Pydantic models for questions, responses, reports
and admin sign-in.
"""

from pydantic import ValidationError

from survey_service.schemas.question import (
    QuestionType,
    QuestionDefinition,
    QuestionInput,
    QuestionRead,
    MoveDirection,
    MoveRequest,
    ShortTextQuestion,
    SingleChoiceQuestion,
    DropdownQuestion,
    MultiChoiceQuestion,
    YesNoQuestion,
    ScaleQuestion,
    parse_question,
)
from survey_service.schemas.response import ResponseRecord, ResponseTableRead
from survey_service.schemas.report import ReportCreate, ReportRecord
from survey_service.schemas.auth import LoginRequest


def validation_message(exc: ValidationError) -> str:
    """Return the user-facing message of the first validation error.

    Custom validators raise ``ValueError`` with the exact message shown to
    users; pydantic prefixes those with "Value error, ", which is dropped.
    """
    errors = exc.errors()
    if not errors:
        return str(exc)
    error = errors[0]
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return error.get("msg", str(exc))


__all__ = [
    "QuestionType",
    "QuestionDefinition",
    "QuestionInput",
    "QuestionRead",
    "MoveDirection",
    "MoveRequest",
    "ShortTextQuestion",
    "SingleChoiceQuestion",
    "DropdownQuestion",
    "MultiChoiceQuestion",
    "YesNoQuestion",
    "ScaleQuestion",
    "parse_question",
    "ResponseRecord",
    "ResponseTableRead",
    "ReportCreate",
    "ReportRecord",
    "LoginRequest",
    "validation_message",
]
