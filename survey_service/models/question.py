"""Question model for the survey question list.

This module defines the Question model. Questions are authored by admins and
displayed to respondents in ascending ``order``; ties fall back to arrival
order.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    JSON,
    String,
    Text,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from survey_service.models.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Question(Base):
    """Model for a single survey question.

    Attributes:
        id: Opaque string identifier
        text: Display label
        type: Question type (short_text, single_choice, dropdown, multi_choice,
            yes_no, scale_1_5)
        required: Whether respondents must answer
        options: Ordered option strings (choice types only)
        order: Numeric display rank
        created_at: When the question was created
        updated_at: Last edit timestamp
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=_new_id,
        comment="Opaque question identifier"
    )
    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Question text shown to respondents"
    )
    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Question type"
    )
    required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether an answer is required"
    )
    options: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered choice options"
    )
    order: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        index=True,
        comment="Display rank, ascending"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When the question was created"
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=_utcnow,
        comment="Last edit timestamp"
    )

    @classmethod
    def list_ordered(cls, db: Session) -> list["Question"]:
        """Return all questions by ``order`` ascending, then arrival order.

        Args:
            db: Database session

        Returns:
            list[Question]: Ordered question rows
        """
        return list(
            db.execute(
                select(cls).order_by(cls.order.asc(), cls.created_at.asc())
            ).scalars()
        )

    @classmethod
    def count(cls, db: Session) -> int:
        return db.execute(select(func.count()).select_from(cls)).scalar_one()

    def to_record(self) -> dict:
        """Plain mapping used to build the typed question variant."""
        return {
            "id": self.id,
            "text": self.text,
            "type": self.type,
            "required": bool(self.required),
            "order": self.order,
            "options": list(self.options or []),
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Question(id={self.id}, "
            f"type={self.type}, "
            f"order={self.order}, "
            f"text={self.text[:30]!r})>"
        )
