"""Live query feeds for push-based snapshot delivery.

A ``LiveQuery`` wraps one ordered query over a collection. Subscribers get
the full snapshot immediately (when one has been loaded) and again after
every ``refresh``; each delivery replaces the subscriber's previous copy.
Services refresh the matching feed after each committed write.

Usage:
    from survey_service.services.live_query import question_feed

    subscription = question_feed.subscribe(lambda questions: redraw(questions))
    ...
    subscription.cancel()
"""

import threading
from typing import Callable, Generic, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy.orm import Session

from survey_service.models.question import Question
from survey_service.models.report import Report
from survey_service.models.response import SurveyResponse
from survey_service.schemas.question import QuestionDefinition, parse_question
from survey_service.schemas.report import ReportRecord
from survey_service.schemas.response import ResponseRecord
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SnapshotCallback = Callable[[tuple], None]


class Subscription:
    """Cancelable handle returned by ``LiveQuery.subscribe``."""

    def __init__(self, feed: "LiveQuery", callback: SnapshotCallback):
        self._feed = feed
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        if self.active:
            self.active = False
            self._feed._remove(self)


class LiveQuery(Generic[T]):
    """Push-based view over one ordered query."""

    def __init__(self, name: str, loader: Callable[[Session], tuple]):
        """Initialize feed.

        Args:
            name: Collection name used in logs
            loader: Function that loads the full ordered snapshot
        """
        self.name = name
        self._loader = loader
        self._subscriptions: list[Subscription] = []
        self._snapshot: Optional[tuple] = None
        self._lock = threading.Lock()
        # Held across load, store and delivery so refreshes publish in order
        self._refresh_lock = threading.RLock()

    @property
    def snapshot(self) -> Optional[tuple]:
        """Most recently loaded snapshot, or None before the first refresh."""
        return self._snapshot

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, callback: SnapshotCallback) -> Subscription:
        """Register a callback for snapshot deliveries.

        Args:
            callback: Called with the full snapshot tuple on each delivery

        Returns:
            Subscription: Handle whose ``cancel()`` stops deliveries
        """
        subscription = Subscription(self, callback)
        with self._refresh_lock:
            with self._lock:
                self._subscriptions.append(subscription)
                snapshot = self._snapshot

            if snapshot is not None:
                self._deliver(subscription, snapshot)

        logger.debug(f"New subscriber on {self.name} feed")
        return subscription

    def refresh(self, db: Session) -> tuple:
        """Reload the snapshot and push it to every active subscriber.

        Args:
            db: Database session used to run the query

        Returns:
            tuple: The new snapshot
        """
        with self._refresh_lock:
            snapshot = tuple(self._loader(db))
            with self._lock:
                self._snapshot = snapshot
                subscriptions = list(self._subscriptions)

            for subscription in subscriptions:
                self._deliver(subscription, snapshot)

        logger.debug(
            f"Delivered {self.name} snapshot ({len(snapshot)} items) "
            f"to {len(subscriptions)} subscribers"
        )
        return snapshot

    def clear(self) -> None:
        """Drop the cached snapshot and all subscriptions."""
        with self._lock:
            for subscription in self._subscriptions:
                subscription.active = False
            self._subscriptions = []
            self._snapshot = None

    def _deliver(self, subscription: Subscription, snapshot: tuple) -> None:
        if not subscription.active:
            return
        try:
            subscription.callback(snapshot)
        except Exception as e:
            # The triggering write has already committed; log and move on
            logger.error(
                f"Subscriber on {self.name} feed raised during delivery: {e}",
                exc_info=True
            )

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        logger.debug(f"Subscriber left {self.name} feed")


def load_questions(db: Session) -> tuple[QuestionDefinition, ...]:
    """Load all questions as typed variants, ordered for display.

    Rows with an unrecognized type are skipped with a warning.
    """
    questions = []
    for row in Question.list_ordered(db):
        try:
            questions.append(parse_question(row.to_record()))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed question {row.id}: {e}",
                extra={"question_id": row.id}
            )
    return tuple(questions)


def load_responses(db: Session) -> tuple[ResponseRecord, ...]:
    """Load all responses newest first."""
    return tuple(
        ResponseRecord.model_validate(row)
        for row in SurveyResponse.list_newest_first(db)
    )


def load_reports(db: Session) -> tuple[ReportRecord, ...]:
    """Load all reports newest first."""
    return tuple(
        ReportRecord.model_validate(row)
        for row in Report.list_newest_first(db)
    )


question_feed: LiveQuery[QuestionDefinition] = LiveQuery("questions", load_questions)
response_feed: LiveQuery[ResponseRecord] = LiveQuery("responses", load_responses)
report_feed: LiveQuery[ReportRecord] = LiveQuery("reports", load_reports)
