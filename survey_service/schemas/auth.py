"""Pydantic schemas for admin sign-in."""

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    """Email/password sign-in payload."""

    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()
