"""Admin dashboard state.

``DashboardState`` is the admin view's local copy of the three collections.
It subscribes to the question, response and report feeds; every delivery
replaces the matching snapshot wholesale and rebuilds the charts, releasing
the previous chart handles first. A listener is notified with the full
dashboard payload after each change.
"""

import itertools
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from survey_service.schemas.question import QuestionDefinition, QuestionRead
from survey_service.schemas.report import ReportRecord
from survey_service.schemas.response import ResponseRecord
from survey_service.services.aggregator import (
    REPORT_HEADER,
    ChartSeries,
    build_all_chart_series,
    build_report_rows,
    build_response_table,
    report_count_label,
)
from survey_service.services.live_query import (
    LiveQuery,
    Subscription,
    question_feed,
    report_feed,
    response_feed,
)
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

_handle_ids = itertools.count(1)


@dataclass
class ChartHandle:
    """A built chart; must be released before it is replaced."""
    handle_id: int
    series: ChartSeries
    released: bool = False

    def release(self) -> None:
        self.released = True


class ChartRegistry:
    """Tracks the live chart handles of one dashboard."""

    def __init__(self):
        self._handles: dict[str, ChartHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def handles(self) -> list[ChartHandle]:
        return list(self._handles.values())

    def release_all(self) -> int:
        """Release and forget every handle. Returns how many were released."""
        released = 0
        for handle in self._handles.values():
            handle.release()
            released += 1
        self._handles = {}
        return released

    def rebuild(self, series: Sequence[ChartSeries]) -> list[ChartHandle]:
        """Release the current handles, then create one per series."""
        self.release_all()
        for item in series:
            self._handles[item.question_id] = ChartHandle(next(_handle_ids), item)
        return self.handles


def build_dashboard_payload(
    questions: Sequence[QuestionDefinition],
    responses: Sequence[ResponseRecord],
    reports: Sequence[ReportRecord],
    charts: Optional[Sequence[ChartSeries]] = None,
) -> dict:
    """JSON-ready dashboard view of the three collections."""
    table = build_response_table(questions, responses)
    if charts is None:
        charts = build_all_chart_series(questions, responses)

    return {
        "questions": [
            QuestionRead.from_definition(question).model_dump() for question in questions
        ],
        "responses": {
            "header": table.header,
            "rows": table.display_rows(),
            "total": len(table.rows),
        },
        "charts": [series.to_dict() for series in charts],
        "reports": {
            "header": list(REPORT_HEADER),
            "rows": build_report_rows(reports),
            "total": len(reports),
            "label": report_count_label(len(reports)),
        },
    }


class DashboardState:
    """Local snapshot of questions, responses and reports for one admin view.

    Usage:
        state = DashboardState(on_change=push_to_browser)
        state.attach()
        ...
        state.detach()
    """

    def __init__(self, on_change: Optional[Callable[[dict], None]] = None):
        """Initialize empty state.

        Args:
            on_change: Called with the dashboard payload after each delivery
        """
        self.questions: tuple[QuestionDefinition, ...] = ()
        self.responses: tuple[ResponseRecord, ...] = ()
        self.reports: tuple[ReportRecord, ...] = ()
        self.charts = ChartRegistry()
        self.on_change = on_change
        self._subscriptions: list[Subscription] = []
        # Feeds deliver from request threads; one update at a time
        self._lock = threading.RLock()

    def apply_questions(self, snapshot: Sequence[QuestionDefinition]) -> None:
        with self._lock:
            self.questions = tuple(snapshot)
            self._rebuild_charts()
            self._notify()

    def apply_responses(self, snapshot: Sequence[ResponseRecord]) -> None:
        with self._lock:
            self.responses = tuple(snapshot)
            self._rebuild_charts()
            self._notify()

    def apply_reports(self, snapshot: Sequence[ReportRecord]) -> None:
        with self._lock:
            self.reports = tuple(snapshot)
            self._notify()

    def attach(
        self,
        questions: LiveQuery = question_feed,
        responses: LiveQuery = response_feed,
        reports: LiveQuery = report_feed,
    ) -> None:
        """Subscribe to the three feeds."""
        self.detach()
        self._subscriptions = [
            questions.subscribe(self.apply_questions),
            responses.subscribe(self.apply_responses),
            reports.subscribe(self.apply_reports),
        ]

    def detach(self) -> None:
        """Cancel feed subscriptions and release chart handles."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
        with self._lock:
            self.charts.release_all()

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def payload(self) -> dict:
        with self._lock:
            return build_dashboard_payload(
                self.questions,
                self.responses,
                self.reports,
                charts=[handle.series for handle in self.charts.handles],
            )

    def _rebuild_charts(self) -> None:
        self.charts.rebuild(build_all_chart_series(self.questions, self.responses))

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.payload())
