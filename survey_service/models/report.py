"""Report model for abuse/feedback reports filed from the survey page."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from survey_service.models.database import Base


class Report(Base):
    """Model for a visitor-submitted report.

    Attributes:
        id: Opaque report identifier
        created_at: Server-assigned submission timestamp
        name: Reporter name
        email: Reporter email
        reason: Selected reason (e.g. "Other")
        description: Free-text description
        other_reason: Details for reason "Other", empty otherwise
    """

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    other_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")

    @classmethod
    def list_newest_first(cls, db: Session) -> list["Report"]:
        """Return all reports ordered by ``created_at`` descending."""
        return list(
            db.execute(select(cls).order_by(cls.created_at.desc())).scalars()
        )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, reason={self.reason!r})>"
