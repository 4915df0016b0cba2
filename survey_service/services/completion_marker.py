"""Per-browser survey completion marker.

After a successful submission the browser gets a long-lived
``surveySubmitted=true`` cookie; while it is present the survey page shows
the thank-you view instead of the form.
"""

from fastapi import Request, Response

from survey_service.config import get_settings
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

COMPLETION_COOKIE = "surveySubmitted"
COMPLETION_VALUE = "true"


def has_completed(request: Request) -> bool:
    return request.cookies.get(COMPLETION_COOKIE) == COMPLETION_VALUE


def mark_completed(response: Response) -> bool:
    """Set the completion cookie on an outgoing response.

    A failure is logged and reported as False; it never blocks the
    thank-you view.
    """
    settings = get_settings()
    try:
        response.set_cookie(
            key=COMPLETION_COOKIE,
            value=COMPLETION_VALUE,
            max_age=settings.completion_cookie_max_age_days * 24 * 60 * 60,
            httponly=True,
            samesite="lax",
            secure=settings.is_production,
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not set completion marker: {e}")
        return False
    return True
