"""Create-only writes for survey responses and reports.

Both collections are written by anonymous visitors. The server assigns the
timestamp, and after each commit the matching feed is refreshed.
"""

from typing import Any, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_service.models.report import Report
from survey_service.models.response import SurveyResponse
from survey_service.schemas import validation_message
from survey_service.schemas.report import ReportCreate, ReportRecord
from survey_service.schemas.response import ResponseRecord
from survey_service.services.form_renderer import SUBMISSION_FAILED_MESSAGE, is_empty
from survey_service.services.live_query import LiveQuery, report_feed, response_feed
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

REPORT_FAILED_MESSAGE = "Failed to submit report. Please try again."


class SubmissionError(Exception):
    """Raised when a survey response could not be stored."""
    pass


class ReportError(Exception):
    """Raised when a report is invalid or could not be stored."""
    pass


class ReportValidationError(ReportError):
    """Raised when a report payload fails validation."""
    pass


def _publish(feed: LiveQuery, db: Session) -> None:
    try:
        feed.refresh(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to refresh {feed.name} feed: {e}", exc_info=True)


def record_response(db: Session, answers: dict[str, Any]) -> ResponseRecord:
    """Store a validated survey response.

    Args:
        db: Database session
        answers: Question ID to answer; empty values are dropped

    Returns:
        ResponseRecord: The stored response with its server timestamp

    Raises:
        SubmissionError: If the write fails (nothing is stored)
    """
    stored_answers = {key: value for key, value in answers.items() if not is_empty(value)}

    try:
        response = SurveyResponse(answers=stored_answers)
        db.add(response)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store survey response: {e}", exc_info=True)
        raise SubmissionError(SUBMISSION_FAILED_MESSAGE)

    record = ResponseRecord.model_validate(response)
    logger.info(
        f"Stored response {record.id} with {len(stored_answers)} answers",
        extra={"response_id": record.id}
    )
    _publish(response_feed, db)
    return record


def create_report(db: Session, payload: Union[ReportCreate, dict]) -> ReportRecord:
    """Validate and store a report.

    Args:
        db: Database session
        payload: Name, email, reason, description and other reason

    Returns:
        ReportRecord: The stored report

    Raises:
        ReportValidationError: If the payload is incomplete
        ReportError: If the write fails
    """
    if not isinstance(payload, ReportCreate):
        try:
            payload = ReportCreate.model_validate(payload)
        except ValidationError as e:
            message = validation_message(e)
            logger.info(f"Report rejected: {message}")
            raise ReportValidationError(message)

    try:
        report = Report(
            name=payload.name,
            email=payload.email,
            reason=payload.reason,
            description=payload.description,
            other_reason=payload.other_reason,
        )
        db.add(report)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store report: {e}", exc_info=True)
        raise ReportError(REPORT_FAILED_MESSAGE)

    record = ReportRecord.model_validate(report)
    logger.info(f"Stored report {record.id} (reason: {record.reason})")
    _publish(report_feed, db)
    return record
