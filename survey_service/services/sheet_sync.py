"""Mirror new survey responses into a spreadsheet.

Runs once per stored response, as a FastAPI background task with its own
database session. Each run:

1. reads the questions in display order and builds the header row,
2. compares it with the sheet's first row and overwrites the row when it
   differs (a failed read counts as different),
3. appends one row for the response.

Missing sheet configuration is logged and the run is skipped.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from sqlalchemy.orm import Session

from survey_service.models.database import SessionLocal
from survey_service.schemas.question import QuestionDefinition
from survey_service.schemas.response import ResponseRecord
from survey_service.services.aggregator import SUBMITTED_HEADER, as_utc, normalize_answer
from survey_service.services.live_query import load_questions
from survey_service.services.sheets_client import SheetsClient, get_sheets_client
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

SHEET_JOINER = "; "

SHEET_ERRORS = (HttpError, GoogleAuthError, OSError)


class SheetSyncError(Exception):
    """Raised when the header or response row could not be written."""
    pass


@dataclass(frozen=True)
class ResponseCreatedEvent:
    """Notification that a response was stored."""
    response_id: str
    created_at: Optional[datetime]
    answers: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: ResponseRecord) -> "ResponseCreatedEvent":
        return cls(
            response_id=record.id,
            created_at=record.created_at,
            answers=dict(record.answers),
        )


def build_header(questions: Sequence[QuestionDefinition]) -> list[str]:
    return [SUBMITTED_HEADER] + [question.text for question in questions]


def format_sheet_timestamp(value: Optional[datetime]) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2024-05-01T09:30:00.000Z"""
    if value is None:
        return ""
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_row(
    questions: Sequence[QuestionDefinition],
    event: ResponseCreatedEvent,
) -> list[str]:
    """Row for one response: timestamp then one cell per question."""
    row = [format_sheet_timestamp(event.created_at)]
    for question in questions:
        row.append(normalize_answer(event.answers.get(question.id), joiner=SHEET_JOINER))
    return row


def ensure_header(client: SheetsClient, header: list[str]) -> bool:
    """Overwrite the sheet's first row unless it already equals ``header``.

    Returns:
        bool: True if the header was written

    Raises:
        SheetSyncError: If writing the header fails
    """
    try:
        current = client.read_first_row()
    except SHEET_ERRORS as e:
        logger.warning(f"Could not read sheet header, rewriting it: {e}")
        current = None

    if current == header:
        return False

    try:
        client.write_header(header)
    except SHEET_ERRORS as e:
        logger.error(f"Failed to write sheet header: {e}", exc_info=True)
        raise SheetSyncError(f"Failed to write sheet header: {e}")
    return True


class SheetSyncJob:
    """Append stored responses to the configured spreadsheet."""

    def __init__(
        self,
        client_factory: Callable[[], Optional[SheetsClient]] = get_sheets_client,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        """Initialize job.

        Args:
            client_factory: Returns a SheetsClient, or None when unconfigured
            session_factory: Opens a database session for reading questions
        """
        self.client_factory = client_factory
        self.session_factory = session_factory

    def run(self, event: ResponseCreatedEvent) -> bool:
        """Sync one response.

        Args:
            event: The stored response

        Returns:
            bool: True if a row was appended, False if sync is not configured

        Raises:
            SheetSyncError: If the sheet could not be written
        """
        client = self.client_factory()
        if client is None:
            logger.info(
                f"Skipping sheet sync for response {event.response_id}",
                extra={"response_id": event.response_id}
            )
            return False

        db = self.session_factory()
        try:
            questions = load_questions(db)
        finally:
            db.close()

        ensure_header(client, build_header(questions))

        try:
            client.append_row(build_row(questions, event))
        except SHEET_ERRORS as e:
            logger.error(
                f"Failed to append response {event.response_id} to sheet: {e}",
                extra={"response_id": event.response_id},
                exc_info=True
            )
            raise SheetSyncError(f"Failed to append response {event.response_id}: {e}")

        logger.info(
            f"Synced response {event.response_id} to sheet",
            extra={"response_id": event.response_id}
        )
        return True


def sync_response_to_sheet(event: ResponseCreatedEvent) -> None:
    """Background task entry point; failures are logged, never raised."""
    try:
        SheetSyncJob().run(event)
    except SheetSyncError:
        logger.error(
            f"Sheet sync failed for response {event.response_id}",
            extra={"response_id": event.response_id}
        )
