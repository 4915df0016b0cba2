"""Response aggregation for the admin dashboard.

This module derives every read view of the collected data from the question
list plus the stored responses:

- the tabular view (one row per response, one column per question),
- the CSV export (same header and rows, RFC 4180 quoting),
- chart series (label/count buckets per question),
- the report table.

Answer keys with no matching question are ignored, and questions missing
from a response produce an empty cell.
"""

import csv
import io
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence

from survey_service.schemas.question import (
    DropdownQuestion,
    MultiChoiceQuestion,
    QuestionDefinition,
    ScaleQuestion,
    ShortTextQuestion,
    SingleChoiceQuestion,
    YesNoQuestion,
)
from survey_service.schemas.report import ReportRecord
from survey_service.schemas.response import ResponseRecord
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

PLACEHOLDER = "-"
SUBMITTED_HEADER = "Submitted"
TABLE_JOINER = ", "

SHORT_TEXT_TOP_N = 5
OTHER_BUCKET = "Other"
NO_RESPONSES_BUCKET = "No responses"

PIE_MAX_BUCKETS = 5

COLOR_PALETTE = (
    "#2563eb",
    "#38bdf8",
    "#14b8a6",
    "#f59e0b",
    "#ef4444",
    "#a855f7",
    "#22c55e",
    "#f97316",
    "#64748b",
)

REPORT_HEADER = ["Submitted", "Name", "Email", "Reason", "Description", "Other Details"]


def normalize_answer(value: Any, joiner: str = TABLE_JOINER) -> str:
    """Convert a stored answer to display text.

    Args:
        value: Stored answer (str, int, bool, list or None)
        joiner: Separator for multi-choice lists

    Returns:
        str: "" for None, joined lists, "Yes"/"No" for booleans, else str()
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return joiner.join(str(item) for item in value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (as read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a submission time for tables and CSV ("-" when unknown)."""
    if value is None:
        return PLACEHOLDER
    return as_utc(value).strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class ResponseTable:
    """Tabular view of responses.

    Attributes:
        header: ["Submitted", question texts...]
        rows: One row per response, newest first. Unanswered cells are "".
    """
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)

    def display_rows(self) -> list[list[str]]:
        """Rows with empty cells shown as the placeholder dash."""
        return [[cell if cell != "" else PLACEHOLDER for cell in row] for row in self.rows]


def _newest_first(responses: Sequence[ResponseRecord]) -> list[ResponseRecord]:
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(
        responses,
        key=lambda response: as_utc(response.created_at) if response.created_at else oldest,
        reverse=True,
    )


def build_response_table(
    questions: Sequence[QuestionDefinition],
    responses: Sequence[ResponseRecord],
) -> ResponseTable:
    """Build the tabular view.

    Args:
        questions: Questions ordered by ``order``
        responses: Stored responses (any order; sorted newest first here)

    Returns:
        ResponseTable with one column per question and one row per response
    """
    header = [SUBMITTED_HEADER] + [question.text for question in questions]
    table = ResponseTable(header=header)

    for response in _newest_first(responses):
        answers = response.answers or {}
        row = [format_timestamp(response.created_at)]
        for question in questions:
            row.append(normalize_answer(answers.get(question.id)))
        table.rows.append(row)

    return table


def build_csv(
    questions: Sequence[QuestionDefinition],
    responses: Sequence[ResponseRecord],
) -> str:
    """Render the tabular view as CSV text.

    Fields containing a comma, quote or newline are wrapped in double quotes
    with embedded quotes doubled.

    Returns:
        str: CSV text, rows separated by "\\n"
    """
    table = build_response_table(questions, responses)

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(table.header)
    writer.writerows(table.rows)

    text = output.getvalue()
    # No trailing newline after the last row
    return text[:-1] if text.endswith("\n") else text


def csv_filename(today: Optional[date] = None) -> str:
    """Download filename: survey-responses-<YYYY-MM-DD>.csv"""
    today = today or datetime.now(timezone.utc).date()
    return f"survey-responses-{today.isoformat()}.csv"


@dataclass
class ChartSeries:
    """Chart-ready data for one question.

    Attributes:
        question_id: Question the series belongs to
        title: Question text
        chart_type: "pie" or "bar"
        labels: Bucket labels
        data: Bucket counts, aligned with labels
        colors: One palette color per bucket
    """
    question_id: str
    title: str
    chart_type: str
    labels: list[str]
    data: list[int]
    colors: list[str]

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "title": self.title,
            "chart_type": self.chart_type,
            "labels": list(self.labels),
            "data": list(self.data),
            "colors": list(self.colors),
        }


def color_palette(count: int) -> list[str]:
    """Cycle the fixed palette to ``count`` colors."""
    return [COLOR_PALETTE[idx % len(COLOR_PALETTE)] for idx in range(count)]


def chart_type_for(question: QuestionDefinition, bucket_count: int) -> str:
    """Pie for yes/no and for small single-choice/dropdown sets, else bar."""
    if isinstance(question, YesNoQuestion):
        return "pie"
    if isinstance(question, (SingleChoiceQuestion, DropdownQuestion)) and bucket_count <= PIE_MAX_BUCKETS:
        return "pie"
    return "bar"


def _collect_values(question: QuestionDefinition, responses: Sequence[ResponseRecord]) -> list[str]:
    """Flatten the non-empty answers to one question into bucket labels."""
    values = []
    for response in responses:
        answer = (response.answers or {}).get(question.id)
        if answer is None or answer == "":
            continue

        if isinstance(question, MultiChoiceQuestion):
            if isinstance(answer, (list, tuple)):
                values.extend(str(item) for item in answer)
        else:
            values.append(normalize_answer(answer))
    return values


def compress_counts(counts: Counter, max_items: int = SHORT_TEXT_TOP_N) -> tuple[list[str], list[int]]:
    """Keep the ``max_items`` most frequent labels and merge the rest.

    Ties keep first-seen order. Everything past the cut-off is summed into a
    single "Other" bucket. With no values a single "No responses" bucket of
    0 is returned.
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    top = ranked[:max_items]
    remainder = ranked[max_items:]

    labels = [label for label, _ in top]
    data = [count for _, count in top]

    if remainder:
        labels.append(OTHER_BUCKET)
        data.append(sum(count for _, count in remainder))

    if not labels:
        labels.append(NO_RESPONSES_BUCKET)
        data.append(0)

    return labels, data


def build_chart_series(
    question: QuestionDefinition,
    responses: Sequence[ResponseRecord],
) -> ChartSeries:
    """Count answers to one question into chart buckets.

    - yes_no: fixed buckets Yes, No
    - scale_1_5: fixed buckets "1".."5"
    - single_choice / dropdown / multi_choice: the current options; a
      multi-choice response adds one count per selected option
    - short_text: top 5 trimmed values plus "Other"

    Answer values outside the fixed buckets (for example an option that has
    since been renamed) get their own bucket after the fixed ones.

    Returns:
        ChartSeries for the question
    """
    values = _collect_values(question, responses)

    if isinstance(question, ShortTextQuestion):
        counts = Counter(value.strip() for value in values if value.strip())
        labels, data = compress_counts(counts)
    elif isinstance(question, (YesNoQuestion, ScaleQuestion, SingleChoiceQuestion,
                               DropdownQuestion, MultiChoiceQuestion)):
        counts: dict[str, int] = {label: 0 for label in question.choices}
        for value in values:
            counts[value] = counts.get(value, 0) + 1
        labels = list(counts.keys())
        data = [counts[label] for label in labels]
    else:
        raise TypeError(f"Unsupported question type: {question.type}")

    return ChartSeries(
        question_id=question.id,
        title=question.text,
        chart_type=chart_type_for(question, len(labels)),
        labels=labels,
        data=data,
        colors=color_palette(len(labels)),
    )


def build_all_chart_series(
    questions: Sequence[QuestionDefinition],
    responses: Sequence[ResponseRecord],
) -> list[ChartSeries]:
    """Chart series for every question, in display order."""
    return [build_chart_series(question, responses) for question in questions]


def build_report_rows(reports: Sequence[ReportRecord]) -> list[list[str]]:
    """Report table rows, newest first, empty fields shown as "-"."""
    rows = []
    for report in reports:
        rows.append([
            format_timestamp(report.created_at),
            report.name or PLACEHOLDER,
            report.email or PLACEHOLDER,
            report.reason or PLACEHOLDER,
            report.description or PLACEHOLDER,
            report.other_reason or PLACEHOLDER,
        ])
    return rows


def report_count_label(total: int) -> str:
    """"1 report" / "N reports"."""
    return f"{total} report{'' if total == 1 else 's'}"
