"""Admin sign-in and dashboard access control.

Accounts are email/password rows in ``user_accounts``. A signed-in account
may open the dashboard only if its email is on the ADMIN_EMAILS allow-list
(an empty list allows every account). An account that passes the password
check but fails the allow-list is signed out straight away.

The signed-in email is kept in the Starlette session cookie under
``SESSION_EMAIL_KEY``.
"""

from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from survey_service.config import Settings, get_settings
from survey_service.models.user import UserAccount
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

SESSION_EMAIL_KEY = "admin_email"

SIGN_IN_FAILED_MESSAGE = "Sign-in failed. Please check your credentials."
ACCESS_DENIED_MESSAGE = "Access denied. This account is not an admin."
ADMIN_NOT_CONFIGURED_MESSAGE = (
    "Admin configuration is missing. Set SECRET_KEY to enable the dashboard."
)


class AuthenticationError(Exception):
    """Raised when an email/password pair doesn't match an account."""
    pass


class AuthorizationError(Exception):
    """Raised when a valid account is not on the admin allow-list."""
    pass


def is_admin_email(email: str, settings: Optional[Settings] = None) -> bool:
    """Check an email against the admin allow-list.

    Args:
        email: Account email
        settings: Settings to read ADMIN_EMAILS from (defaults to global)

    Returns:
        bool: True if allowed (always True when the list is empty)
    """
    settings = settings or get_settings()
    allowed = settings.get_admin_emails_list()
    if not allowed:
        return True
    return email.strip().lower() in allowed


def authenticate(db: Session, email: str, password: str) -> UserAccount:
    """Check an email/password pair.

    Raises:
        AuthenticationError: If the account doesn't exist or the password is wrong
    """
    if not email or not password:
        raise AuthenticationError(SIGN_IN_FAILED_MESSAGE)

    account = UserAccount.get_by_email(db, email)
    if account is None or not account.check_password(password):
        logger.warning("Admin sign-in failed: bad credentials")
        raise AuthenticationError(SIGN_IN_FAILED_MESSAGE)
    return account


def sign_in(request: Request, db: Session, email: str, password: str) -> str:
    """Authenticate and start an admin session.

    Args:
        request: Current request (its session cookie is updated)
        db: Database session
        email: Submitted email
        password: Submitted password

    Returns:
        str: The signed-in email

    Raises:
        AuthenticationError: Bad credentials
        AuthorizationError: Account is not an admin; the session is cleared
    """
    account = authenticate(db, email, password)

    if not is_admin_email(account.email):
        request.session.clear()
        logger.warning(f"Admin access denied for {account.email}")
        raise AuthorizationError(ACCESS_DENIED_MESSAGE)

    request.session[SESSION_EMAIL_KEY] = account.email
    logger.info(f"Admin signed in: {account.email}")
    return account.email


def sign_out(request: Request) -> None:
    """End the admin session."""
    email = request.session.get(SESSION_EMAIL_KEY)
    request.session.clear()
    if email:
        logger.info(f"Admin signed out: {email}")


def current_admin(request: Request) -> Optional[str]:
    """Return the signed-in admin email, or None.

    A session whose email has since been removed from the allow-list is
    cleared.
    """
    email = request.session.get(SESSION_EMAIL_KEY)
    if not email:
        return None
    if not is_admin_email(email):
        request.session.clear()
        logger.warning(f"Signed out {email}: no longer on the admin allow-list")
        return None
    return email


def require_admin(request: Request) -> str:
    """FastAPI dependency guarding the admin API.

    Returns:
        str: The signed-in admin email

    Raises:
        HTTPException: 503 when admin is not configured, 401 when not signed in
    """
    if not get_settings().is_admin_configured:
        raise HTTPException(status_code=503, detail=ADMIN_NOT_CONFIGURED_MESSAGE)

    email = current_admin(request)
    if email is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return email


def create_account(db: Session, email: str, password: str) -> UserAccount:
    """Create a sign-in account (used by the ``create-user`` command).

    Raises:
        ValueError: If email or password is blank, or the email is taken
    """
    email = email.strip().lower()
    if not email or not password:
        raise ValueError("Email and password are required")
    if UserAccount.get_by_email(db, email) is not None:
        raise ValueError(f"An account for {email} already exists")

    account = UserAccount(email=email)
    account.set_password(password)
    db.add(account)
    db.commit()
    logger.info(f"Created account {email}")
    return account
