"""Unit tests for the survey completion cookie."""

from unittest.mock import Mock

from fastapi import Response

from survey_service.services.completion_marker import (
    COMPLETION_COOKIE,
    has_completed,
    mark_completed,
)


def test_mark_completed_sets_cookie():
    response = Response()
    assert mark_completed(response) is True

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{COMPLETION_COOKIE}=true")
    assert "HttpOnly" in cookie
    assert "Max-Age=31536000" in cookie


def test_has_completed():
    request = Mock()
    request.cookies = {COMPLETION_COOKIE: "true"}
    assert has_completed(request)

    request.cookies = {COMPLETION_COOKIE: "yes"}
    assert not has_completed(request)


def test_cookie_failure_reported():
    response = Mock()
    response.set_cookie.side_effect = TypeError("bad cookie")
    assert mark_completed(response) is False
