"""Pydantic schemas for stored survey responses."""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# short_text/single_choice/dropdown/yes_no -> str, scale_1_5 -> int,
# multi_choice -> list[str]
AnswerValue = Union[str, int, list[str]]


class ResponseRecord(BaseModel):
    """Immutable snapshot of a stored response.

    Attributes:
        id: Response identifier
        created_at: Server-assigned creation time (None while unknown)
        answers: Mapping of question ID to answer; absent keys are unanswered
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    created_at: Optional[datetime] = None
    answers: dict[str, Any] = Field(default_factory=dict)


class ResponseTableRead(BaseModel):
    """Tabular view of all responses for the admin API."""
    header: list[str]
    rows: list[list[str]]
    total: int
