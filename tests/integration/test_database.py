"""Integration tests for database operations.

These tests verify the model layer against SQLite:
- Question ordering and counting
- Response and report ordering
- Account lookup
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from survey_service.models.question import Question
from survey_service.models.report import Report
from survey_service.models.response import SurveyResponse
from survey_service.models.user import UserAccount


class TestQuestionIntegration:
    """Integration tests for Question model."""

    def test_create_and_query_question(self, db_session):
        question = Question(
            text="Favourite colour",
            type="single_choice",
            required=True,
            options=["Red", "Green"],
            order=1,
        )
        db_session.add(question)
        db_session.commit()

        result = db_session.get(Question, question.id)
        assert result is not None
        assert len(result.id) == 32
        assert result.options == ["Red", "Green"]
        assert result.created_at is not None
        assert result.updated_at is None

    def test_list_ordered_breaks_ties_by_arrival(self, db_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        rows = [
            Question(text="late tie", type="short_text", order=2, created_at=base + timedelta(seconds=5)),
            Question(text="first", type="short_text", order=1, created_at=base + timedelta(seconds=9)),
            Question(text="early tie", type="short_text", order=2, created_at=base),
        ]
        db_session.add_all(rows)
        db_session.commit()

        assert [row.text for row in Question.list_ordered(db_session)] == ["first", "early tie", "late tie"]
        assert Question.count(db_session) == 3

    def test_update_sets_updated_at(self, db_session, make_question):
        question = make_question(text="Before", order=1)
        question.text = "After"
        db_session.commit()
        assert db_session.get(Question, question.id).updated_at is not None

    def test_to_record(self, make_question):
        question = make_question(text="Pick", type="dropdown", options=["A"], order=2, required=True)
        assert question.to_record() == {
            "id": question.id,
            "text": "Pick",
            "type": "dropdown",
            "required": True,
            "order": 2,
            "options": ["A"],
        }


class TestResponseAndReportIntegration:

    def test_responses_newest_first(self, db_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        db_session.add_all([
            SurveyResponse(answers={"q": "old"}, created_at=base),
            SurveyResponse(answers={"q": "new"}, created_at=base + timedelta(hours=1)),
        ])
        db_session.commit()

        assert [row.answers["q"] for row in SurveyResponse.list_newest_first(db_session)] == ["new", "old"]

    def test_reports_newest_first(self, db_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        common = {"email": "a@example.com", "reason": "Other", "description": "d"}
        db_session.add_all([
            Report(name="old", created_at=base, **common),
            Report(name="new", created_at=base + timedelta(hours=1), **common),
        ])
        db_session.commit()

        reports = Report.list_newest_first(db_session)
        assert [row.name for row in reports] == ["new", "old"]
        assert reports[0].other_reason == ""


class TestUserAccountIntegration:

    def test_email_unique(self, db_session):
        db_session.add(UserAccount(email="a@example.com", password_hash="x"))
        db_session.commit()
        db_session.add(UserAccount(email="a@example.com", password_hash="y"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_get_by_email_case_insensitive(self, db_session):
        db_session.add(UserAccount(email="a@example.com", password_hash="x"))
        db_session.commit()
        assert UserAccount.get_by_email(db_session, " A@EXAMPLE.com ") is not None
        assert UserAccount.get_by_email(db_session, "b@example.com") is None
