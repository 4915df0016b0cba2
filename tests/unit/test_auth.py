"""Unit tests for admin authentication and the allow-list."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from survey_service.config import Settings
from survey_service.models.user import UserAccount
from survey_service.services.auth import (
    ACCESS_DENIED_MESSAGE,
    SESSION_EMAIL_KEY,
    SIGN_IN_FAILED_MESSAGE,
    AuthenticationError,
    AuthorizationError,
    authenticate,
    create_account,
    current_admin,
    is_admin_email,
    require_admin,
    sign_in,
    sign_out,
)

PASSWORD = "s3cret-password"


def fake_request(session=None):
    request = MagicMock()
    request.session = dict(session or {})
    return request


@pytest.fixture
def account(db_session):
    return create_account(db_session, "  Admin@Example.com ", PASSWORD)


@pytest.fixture
def outsider(db_session):
    return create_account(db_session, "someone@example.com", PASSWORD)


class TestAllowList:

    def test_listed_email(self):
        settings = Settings(admin_emails="admin@example.com, Boss@Example.com")
        assert is_admin_email("boss@example.com", settings)
        assert is_admin_email(" ADMIN@example.com ", settings)
        assert not is_admin_email("other@example.com", settings)

    def test_empty_list_allows_everyone(self):
        assert is_admin_email("anyone@example.com", Settings(admin_emails=""))


class TestAccounts:

    def test_create_account_normalizes_email(self, account):
        assert account.email == "admin@example.com"
        assert account.password_hash != PASSWORD
        assert account.check_password(PASSWORD)

    def test_duplicate_account_rejected(self, db_session, account):
        with pytest.raises(ValueError):
            create_account(db_session, "admin@example.com", "other")

    def test_authenticate(self, db_session, account):
        assert authenticate(db_session, "ADMIN@example.com", PASSWORD).id == account.id

    @pytest.mark.parametrize("email,password", [
        ("admin@example.com", "wrong"),
        ("nobody@example.com", PASSWORD),
        ("", ""),
    ])
    def test_bad_credentials(self, db_session, account, email, password):
        with pytest.raises(AuthenticationError, match=SIGN_IN_FAILED_MESSAGE):
            authenticate(db_session, email, password)


class TestSessions:
    """Tests for sign-in, forced sign-out and the API guard."""

    def test_sign_in_stores_email(self, db_session, account):
        request = fake_request()
        assert sign_in(request, db_session, "admin@example.com", PASSWORD) == "admin@example.com"
        assert request.session[SESSION_EMAIL_KEY] == "admin@example.com"

    def test_non_admin_forced_sign_out(self, db_session, outsider):
        request = fake_request({"stale": "value"})
        with pytest.raises(AuthorizationError, match=ACCESS_DENIED_MESSAGE):
            sign_in(request, db_session, "someone@example.com", PASSWORD)
        assert request.session == {}

    def test_sign_out(self):
        request = fake_request({SESSION_EMAIL_KEY: "admin@example.com"})
        sign_out(request)
        assert request.session == {}

    def test_current_admin_drops_removed_email(self):
        request = fake_request({SESSION_EMAIL_KEY: "former@example.com"})
        assert current_admin(request) is None
        assert request.session == {}

    def test_require_admin(self):
        assert require_admin(fake_request({SESSION_EMAIL_KEY: "admin@example.com"})) == "admin@example.com"

        with pytest.raises(HTTPException) as exc_info:
            require_admin(fake_request())
        assert exc_info.value.status_code == 401

    def test_require_admin_unconfigured(self):
        settings = Settings(secret_key="")
        with patch("survey_service.services.auth.get_settings", return_value=settings):
            with pytest.raises(HTTPException) as exc_info:
                require_admin(fake_request({SESSION_EMAIL_KEY: "admin@example.com"}))
        assert exc_info.value.status_code == 503


class TestPasswordHashing:

    def test_hash_is_salted(self):
        first = UserAccount(email="a@example.com")
        second = UserAccount(email="b@example.com")
        first.set_password(PASSWORD)
        second.set_password(PASSWORD)
        assert first.password_hash != second.password_hash
        assert not first.check_password("wrong")
