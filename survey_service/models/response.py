"""SurveyResponse model for storing submitted survey answers.

A response is written once by the survey form and never updated or deleted
by the application.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from survey_service.models.database import Base


class SurveyResponse(Base):
    """Model for one submitted survey.

    Attributes:
        id: Opaque response identifier
        created_at: Server-assigned submission timestamp
        answers: JSON mapping of question ID to answer value. Unanswered
            questions have no key; values are never null.
    """

    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
        comment="Opaque response identifier"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
        comment="When the response was submitted"
    )
    answers: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Question ID to answer value"
    )

    @classmethod
    def list_newest_first(cls, db: Session) -> list["SurveyResponse"]:
        """Return all responses ordered by ``created_at`` descending."""
        return list(
            db.execute(select(cls).order_by(cls.created_at.desc())).scalars()
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<SurveyResponse(id={self.id}, "
            f"created_at={self.created_at}, "
            f"answers={len(self.answers or {})})>"
        )
