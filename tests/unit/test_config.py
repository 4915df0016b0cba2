"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from survey_service.config import Settings


class TestSettings:

    def test_environment_and_log_level_normalized(self):
        settings = Settings(environment="PRODUCTION", log_level="debug")
        assert settings.environment == "production"
        assert settings.is_production
        assert settings.log_level == "DEBUG"

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="moon")

    def test_admin_emails_list(self):
        settings = Settings(admin_emails=" A@Example.com, ,b@example.com ")
        assert settings.get_admin_emails_list() == ["a@example.com", "b@example.com"]

    def test_private_key_newlines_restored(self):
        settings = Settings(sheets_private_key="-----BEGIN-----\\nabc\\n-----END-----")
        assert settings.get_sheets_private_key() == "-----BEGIN-----\nabc\n-----END-----"
        assert Settings(sheets_private_key="").get_sheets_private_key() is None

    def test_blank_tab_falls_back(self):
        assert Settings(sheets_tab="  ").sheets_tab == "Responses"

    def test_configured_flags(self):
        settings = Settings(
            database_url="",
            secret_key="",
            sheets_id="sheet",
            sheets_client_email="svc@example.iam.gserviceaccount.com",
            sheets_private_key="",
        )
        assert not settings.is_store_configured
        assert not settings.is_admin_configured
        assert not settings.is_sheets_configured

        settings = Settings(
            database_url="sqlite://",
            secret_key="key",
            sheets_id="sheet",
            sheets_client_email="svc@example.iam.gserviceaccount.com",
            sheets_private_key="key",
        )
        assert settings.is_store_configured
        assert settings.is_admin_configured
        assert settings.is_sheets_configured
