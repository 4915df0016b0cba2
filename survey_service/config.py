"""Application configuration management using Pydantic Settings.

This module loads and validates environment variables using Pydantic Settings.
All configuration is loaded from environment variables or a .env file.

Missing configuration never prevents the application from starting. Each
surface checks the ``is_*_configured`` property it depends on and disables
itself with a static message instead.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        database_url: SQLAlchemy connection string for the survey store
        database_pool_size: Number of connections to maintain in pool
        database_max_overflow: Maximum overflow connections beyond pool_size
        environment: Application environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        secret_key: Key used to sign admin session cookies
        admin_emails: Comma-separated allow-list of admin email addresses
        sheets_id: Spreadsheet ID that mirrors survey responses
        sheets_tab: Tab name inside the spreadsheet
        sheets_client_email: Service account client email
        sheets_private_key: Service account private key (may contain literal \\n)
        completion_cookie_max_age_days: Lifetime of the survey completion marker
    """

    # Database Configuration
    database_url: str = Field(
        default="",
        description="SQLAlchemy connection string"
    )
    database_pool_size: int = Field(
        default=5,
        description="Number of database connections in pool"
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size"
    )

    # Application Configuration
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    completion_cookie_max_age_days: int = Field(
        default=365,
        ge=1,
        description="Days the survey completion marker is kept by the browser"
    )

    # Admin / Auth Configuration
    secret_key: str = Field(
        default="",
        description="Secret key for signing session cookies"
    )
    admin_emails: str = Field(
        default="",
        description="Comma-separated admin allow-list (empty allows any account)"
    )

    # Google Sheets Configuration
    sheets_id: str = Field(
        default="",
        description="Spreadsheet ID for the response mirror"
    )
    sheets_tab: str = Field(
        default="Responses",
        description="Spreadsheet tab name"
    )
    sheets_client_email: str = Field(
        default="",
        description="Service account client email"
    )
    sheets_private_key: str = Field(
        default="",
        description="Service account private key"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("sheets_tab")
    @classmethod
    def validate_sheets_tab(cls, v: str) -> str:
        """Fall back to the default tab name when left blank."""
        return v.strip() or "Responses"

    def get_admin_emails_list(self) -> List[str]:
        """Parse admin_emails string into a list of lower-cased addresses."""
        return [
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        ]

    def get_sheets_private_key(self) -> Optional[str]:
        """Return the service account key with escaped newlines restored."""
        if not self.sheets_private_key:
            return None
        return self.sheets_private_key.replace("\\n", "\n")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_store_configured(self) -> bool:
        """Check if a database connection string is available."""
        return bool(self.database_url.strip())

    @property
    def is_admin_configured(self) -> bool:
        """Check if admin sessions can be signed."""
        return bool(self.secret_key)

    @property
    def is_sheets_configured(self) -> bool:
        """Check if every credential needed by the sheet sync job is set."""
        return bool(
            self.sheets_id
            and self.sheets_client_email
            and self.get_sheets_private_key()
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Note:
        Uses lru_cache to ensure settings are only loaded once
        and shared across the application.
    """
    return Settings()
