"""Unit tests for response aggregation.

Tests the tabular view, CSV export, chart series and report rows.
"""

import csv
import io
from collections import Counter
from datetime import date, datetime, timedelta, timezone

from survey_service.schemas.question import parse_question
from survey_service.schemas.report import ReportRecord
from survey_service.schemas.response import ResponseRecord
from survey_service.services.aggregator import (
    COLOR_PALETTE,
    build_chart_series,
    build_csv,
    build_report_rows,
    build_response_table,
    color_palette,
    compress_counts,
    csv_filename,
    format_timestamp,
    normalize_answer,
    report_count_label,
)

BASE_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_responses(*answer_maps):
    """Responses with increasing timestamps (the last one is newest)."""
    return [
        ResponseRecord(id=f"r{idx}", created_at=BASE_TIME + timedelta(minutes=idx), answers=answers)
        for idx, answers in enumerate(answer_maps)
    ]


def question(type_name, question_id="q", text="Question", options=None, order=1):
    return parse_question({
        "id": question_id, "text": text, "type": type_name,
        "options": options or [], "order": order,
    })


class TestNormalizeAnswer:

    def test_values(self):
        assert normalize_answer(None) == ""
        assert normalize_answer(["A", "B"]) == "A, B"
        assert normalize_answer(["A", "B"], joiner="; ") == "A; B"
        assert normalize_answer(True) == "Yes"
        assert normalize_answer(False) == "No"
        assert normalize_answer(4) == "4"
        assert normalize_answer("text") == "text"

    def test_format_timestamp(self):
        assert format_timestamp(None) == "-"
        assert format_timestamp(BASE_TIME) == "2024-05-01 09:30:00"
        assert format_timestamp(datetime(2024, 5, 1, 9, 30)) == "2024-05-01 09:30:00"


class TestResponseTable:
    """Tests for the tabular view."""

    def test_one_row_per_response_one_column_per_question(self, sample_questions):
        responses = make_responses(
            {"name": "Ada", "features": ["Profile", "Analytics"], "useful": 4},
            {"name": "Grace", "attended": "Yes"},
            {},
        )
        table = build_response_table(sample_questions, responses)

        assert table.header == ["Submitted", "Name", "Field", "Year", "Features", "Attended?", "Usefulness"]
        assert len(table.rows) == 3
        assert all(len(row) == len(sample_questions) + 1 for row in table.rows)

    def test_rows_newest_first(self, sample_questions):
        responses = make_responses({"name": "old"}, {"name": "new"})
        table = build_response_table(sample_questions, responses)
        assert [row[1] for row in table.rows] == ["new", "old"]

    def test_unanswered_cells(self, sample_questions):
        responses = make_responses({"name": "Ada", "features": ["Profile", "Analytics"], "useful": 4})
        table = build_response_table(sample_questions, responses)

        assert table.rows[0] == ["2024-05-01 09:30:00", "Ada", "", "", "Profile, Analytics", "", "4"]
        assert table.display_rows()[0] == ["2024-05-01 09:30:00", "Ada", "-", "-", "Profile, Analytics", "-", "4"]

    def test_orphaned_answers_ignored(self, sample_questions):
        responses = make_responses({"name": "Ada", "deleted-question": "stale"})
        table = build_response_table(sample_questions, responses)
        assert "stale" not in table.rows[0]


class TestCsv:
    """Tests for CSV export."""

    def test_round_trip_matches_table(self, sample_questions):
        """Test that parsing the CSV reproduces the tabular view."""
        responses = make_responses(
            {"name": 'Ada "the first", Countess', "features": ["Profile", "Feedback"]},
            {"name": "Line\nbreak", "attended": "No", "useful": 2},
            {},
        )
        table = build_response_table(sample_questions, responses)
        text = build_csv(sample_questions, responses)

        parsed = list(csv.reader(io.StringIO(text)))
        assert parsed[0] == table.header
        assert parsed[1:] == table.rows

    def test_quoting(self):
        questions = [question("short_text", text="Name, full")]
        text = build_csv(questions, make_responses({"q": 'Say "hi"'}))
        lines = text.split("\n")
        assert lines[0] == 'Submitted,"Name, full"'
        assert lines[1] == '2024-05-01 09:30:00,"Say ""hi"""'
        assert not text.endswith("\n")

    def test_filename(self):
        assert csv_filename(date(2024, 5, 1)) == "survey-responses-2024-05-01.csv"


class TestYesNoExample:
    """End-to-end example: one yes/no question and four responses."""

    def test_chart_and_csv(self, yes_no_question):
        responses = make_responses({"q1": "Yes"}, {"q1": "Yes"}, {"q1": "No"}, {})

        series = build_chart_series(yes_no_question, responses)
        assert series.labels == ["Yes", "No"]
        assert series.data == [2, 1]
        assert series.chart_type == "pie"

        rows = list(csv.reader(io.StringIO(build_csv([yes_no_question], responses))))
        assert rows[0] == ["Submitted", yes_no_question.text]
        assert len(rows) == 5
        # Newest first: the empty response was created last
        assert rows[1][1] == ""
        assert sorted(row[1] for row in rows[1:]) == ["", "No", "Yes", "Yes"]


class TestChartSeries:
    """Tests for chart bucket counting."""

    def test_multi_choice_counts_each_selection(self):
        q = question("multi_choice", options=["A", "B", "C"])
        responses = make_responses({"q": ["A", "B"]}, {"q": ["A"]}, {"q": ["A", "B", "C"]}, {})
        series = build_chart_series(q, responses)

        assert series.labels == ["A", "B", "C"]
        assert series.data == [3, 2, 1]
        assert sum(series.data) == 6
        assert series.chart_type == "bar"

    def test_choice_buckets_zero_initialized(self):
        q = question("single_choice", options=["A", "B", "C"])
        series = build_chart_series(q, make_responses({"q": "B"}))
        assert series.labels == ["A", "B", "C"]
        assert series.data == [0, 1, 0]

    def test_unknown_values_get_trailing_bucket(self):
        q = question("dropdown", options=["A", "B"])
        series = build_chart_series(q, make_responses({"q": "A"}, {"q": "Renamed"}))
        assert series.labels == ["A", "B", "Renamed"]
        assert series.data == [1, 0, 1]

    def test_scale_buckets(self):
        q = question("scale_1_5")
        series = build_chart_series(q, make_responses({"q": 5}, {"q": 5}, {"q": 1}))
        assert series.labels == ["1", "2", "3", "4", "5"]
        assert series.data == [1, 0, 0, 0, 2]
        assert series.chart_type == "bar"

    def test_chart_type_by_bucket_count(self):
        small = question("single_choice", options=["A", "B", "C", "D", "E"])
        large = question("single_choice", options=["A", "B", "C", "D", "E", "F"])
        assert build_chart_series(small, []).chart_type == "pie"
        assert build_chart_series(large, []).chart_type == "bar"

    def test_short_text_top_five_plus_other(self):
        q = question("short_text")
        values = ["a"] * 5 + ["b"] * 4 + ["c"] * 3 + ["d"] * 2 + ["e"] * 2 + ["f", "g", " a "]
        responses = make_responses(*({"q": value} for value in values))
        series = build_chart_series(q, responses)

        assert len(series.labels) <= 6
        assert series.labels[:5] == ["a", "b", "c", "d", "e"]
        assert series.data[0] == 6
        assert series.labels[-1] == "Other"
        assert series.data[-1] == 2
        assert sum(series.data) == len(values)

    def test_short_text_no_responses(self):
        series = build_chart_series(question("short_text"), make_responses({}, {"q": ""}))
        assert series.labels == ["No responses"]
        assert series.data == [0]

    def test_colors_cycle_palette(self):
        q = question("multi_choice", options=[str(idx) for idx in range(11)])
        series = build_chart_series(q, [])
        assert len(series.colors) == 11
        assert series.colors[9] == COLOR_PALETTE[0]
        assert color_palette(2) == list(COLOR_PALETTE[:2])


class TestCompressCounts:

    def test_ties_keep_first_seen_order(self):
        counts = Counter(["x", "y", "z"])
        labels, data = compress_counts(counts, max_items=2)
        assert labels == ["x", "y", "Other"]
        assert data == [1, 1, 1]

    def test_no_other_when_under_limit(self):
        labels, data = compress_counts(Counter(["x", "x", "y"]))
        assert labels == ["x", "y"]
        assert data == [2, 1]


class TestReportRows:

    def test_rows_and_label(self):
        reports = [
            ReportRecord(id="1", created_at=BASE_TIME, name="Ada", email="ada@example.com",
                         reason="Other", description="Spam", other_reason="Phishing"),
            ReportRecord(id="2", created_at=None, name="Bob", email="bob@example.com",
                         reason="Privacy concern", description="Asked for ID", other_reason=""),
        ]
        rows = build_report_rows(reports)
        assert rows[0] == ["2024-05-01 09:30:00", "Ada", "ada@example.com", "Other", "Spam", "Phishing"]
        assert rows[1][0] == "-"
        assert rows[1][-1] == "-"

    def test_count_label(self):
        assert report_count_label(0) == "0 reports"
        assert report_count_label(1) == "1 report"
        assert report_count_label(3) == "3 reports"
