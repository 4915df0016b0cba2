"""Command line tools.

Usage:
    create-user admin@example.com            # prompts for the password
    create-user admin@example.com --password secret
"""

import argparse
import getpass
import sys
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from survey_service.config import get_settings
from survey_service.logging_config import setup_logging, get_logger
from survey_service.models.database import SessionLocal, init_db
from survey_service.services.auth import create_account, is_admin_email

logger = get_logger(__name__)


def create_user(argv: Optional[Sequence[str]] = None) -> int:
    """Create a sign-in account.

    Returns:
        int: Process exit code
    """
    parser = argparse.ArgumentParser(description="Create a dashboard sign-in account")
    parser.add_argument("email", help="Account email")
    parser.add_argument("--password", "-p", help="Account password (prompted when omitted)")
    args = parser.parse_args(argv)

    setup_logging()
    settings = get_settings()
    if not settings.is_store_configured:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1

    password = args.password or getpass.getpass("Password: ")

    init_db()
    db = SessionLocal()
    try:
        account = create_account(db, args.email, password)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create account: {e}", exc_info=True)
        print("Failed to create account", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Created account {account.email}")
    if not is_admin_email(account.email, settings):
        print("Note: this email is not in ADMIN_EMAILS and cannot open the dashboard")
    return 0


def main() -> None:
    sys.exit(create_user())


if __name__ == "__main__":
    main()
