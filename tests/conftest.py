"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SHEETS_ID", "")
os.environ.setdefault("SHEETS_CLIENT_EMAIL", "")
os.environ.setdefault("SHEETS_PRIVATE_KEY", "")

from survey_service.models.database import Base, get_db
from survey_service.models.question import Question
from survey_service.models.user import UserAccount
from survey_service.schemas.question import parse_question
from survey_service.services.live_query import question_feed, report_feed, response_feed

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        StaticPool shares the single in-memory connection with the threads
        TestClient runs sync endpoints on.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,  # Set to True for SQL debugging
    )

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def reset_feeds():
    """Live query feeds are module globals; start every test empty."""
    for feed in (question_feed, response_feed, report_feed):
        feed.clear()
    yield
    for feed in (question_feed, response_feed, report_feed):
        feed.clear()


@pytest.fixture
def client(db_session):
    """TestClient whose requests use the test database session."""
    from fastapi.testclient import TestClient

    from survey_service.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_account(db_session) -> UserAccount:
    """An account on the ADMIN_EMAILS allow-list."""
    account = UserAccount(email=ADMIN_EMAIL)
    account.set_password(ADMIN_PASSWORD)
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture
def admin_client(client, admin_account):
    """TestClient signed in as the admin account."""
    response = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


@pytest.fixture
def make_question(db_session):
    """Factory inserting question rows with sensible defaults."""

    def _make(**fields) -> Question:
        fields.setdefault("text", "Question")
        fields.setdefault("type", "short_text")
        fields.setdefault("required", False)
        fields.setdefault("options", [])
        question = Question(**fields)
        db_session.add(question)
        db_session.commit()
        return question

    return _make


@pytest.fixture
def yes_no_question():
    """The yes/no question from the end-to-end chart/CSV example."""
    return parse_question({
        "id": "q1",
        "text": "Have you attended any Hackathons?",
        "type": "yes_no",
        "options": ["Yes", "No"],
        "required": True,
        "order": 1,
    })


@pytest.fixture
def sample_questions():
    """One question of every type, in display order."""
    return [
        parse_question(data) for data in (
            {"id": "name", "text": "Name", "type": "short_text", "required": True, "order": 1},
            {"id": "field", "text": "Field", "type": "single_choice", "required": True,
             "options": ["AI/ML", "Web", "Other"], "order": 2},
            {"id": "year", "text": "Year", "type": "dropdown", "required": False,
             "options": ["1st", "2nd", "3rd"], "order": 3},
            {"id": "features", "text": "Features", "type": "multi_choice", "required": True,
             "options": ["Profile", "Analytics", "Feedback"], "order": 4},
            {"id": "attended", "text": "Attended?", "type": "yes_no", "required": True, "order": 5},
            {"id": "useful", "text": "Usefulness", "type": "scale_1_5", "required": False, "order": 6},
        )
    ]
