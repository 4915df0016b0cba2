"""Pydantic schemas for abuse/feedback reports.

Reports are unrelated to survey content: any visitor can file one from the
survey page and admins review them on the dashboard.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OTHER_REASON = "Other"

REPORT_REASONS = (
    "Spam or misleading survey",
    "Inappropriate content",
    "Privacy concern",
    "Technical problem",
    OTHER_REASON,
)

REPORT_SAVED_MESSAGE = (
    "Your report has been saved and will be reviewed after verification."
)


class ReportCreate(BaseModel):
    """Report submission payload.

    All text fields are trimmed. ``other_reason`` is required when
    ``reason`` is "Other" and is stored empty otherwise.
    """

    name: str = Field(default="", description="Reporter name")
    email: str = Field(default="", description="Reporter email")
    reason: str = Field(default="", description="Selected reason")
    description: str = Field(default="", description="What happened")
    other_reason: str = Field(default="", description="Details when reason is Other")

    @field_validator("name", "email", "reason", "description", "other_reason", mode="before")
    @classmethod
    def strip_text(cls, v):
        return "" if v is None else str(v).strip()

    @model_validator(mode="after")
    def validate_required_fields(self):
        """Check required fields, then the Other-reason rule."""
        if not (self.name and self.email and self.reason and self.description):
            raise ValueError("Please complete all required fields.")

        if self.reason == OTHER_REASON:
            if not self.other_reason:
                raise ValueError("Please describe the other reason.")
        else:
            self.other_reason = ""
        return self


class ReportRecord(BaseModel):
    """Immutable snapshot of a stored report."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    created_at: Optional[datetime] = None
    name: str
    email: str
    reason: str
    description: str
    other_reason: str = ""
