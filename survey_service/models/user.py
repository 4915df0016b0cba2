"""UserAccount model for email/password sign-in.

Whether an account may open the admin dashboard is decided separately by the
ADMIN_EMAILS allow-list.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column
from werkzeug.security import check_password_hash, generate_password_hash

from survey_service.models.database import Base


class UserAccount(Base):
    """Model for a sign-in account.

    Attributes:
        id: Primary key
        email: Lower-cased, unique email address
        password_hash: Werkzeug password hash (never the plaintext)
        created_at: When the account was created
    """

    __tablename__ = "user_accounts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(512), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @classmethod
    def get_by_email(cls, db: Session, email: str) -> Optional["UserAccount"]:
        """Find an account by email (case-insensitive)."""
        return db.execute(
            select(cls).where(cls.email == email.strip().lower())
        ).scalar_one_or_none()

    def __repr__(self) -> str:
        return f"<UserAccount(id={self.id}, email={self.email})>"
