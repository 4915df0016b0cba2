"""Survey form endpoints.

GET / renders the form (or the thank-you view when the browser has already
submitted), POST / validates and stores a submission and schedules the
sheet sync.
"""

from typing import Optional, Sequence

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from survey_service.models.database import get_db
from survey_service.schemas.question import QuestionDefinition
from survey_service.schemas.report import OTHER_REASON, REPORT_REASONS
from survey_service.services.completion_marker import has_completed, mark_completed
from survey_service.services.form_renderer import (
    NO_QUESTIONS_MESSAGE,
    SubmissionResult,
    build_controls,
    validate_submission,
)
from survey_service.services.live_query import load_questions
from survey_service.services.sheet_sync import ResponseCreatedEvent, sync_response_to_sheet
from survey_service.services.submissions import SubmissionError, record_response
from survey_service.services.template_renderer import get_template_renderer
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()

PAGE_TITLE = "Survey"


def render_form(
    questions: Sequence[QuestionDefinition],
    result: Optional[SubmissionResult] = None,
    form_error: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render the survey form page."""
    html = get_template_renderer().render("survey_form.html", {
        "title": PAGE_TITLE,
        "controls": build_controls(questions, result),
        "empty_message": NO_QUESTIONS_MESSAGE if not questions else None,
        "form_error": form_error,
        "report_reasons": REPORT_REASONS,
        "other_reason": OTHER_REASON,
    })
    return HTMLResponse(html, status_code=status_code)


def render_thanks(status_code: int = 200) -> HTMLResponse:
    html = get_template_renderer().render("survey_thanks.html", {"title": PAGE_TITLE})
    return HTMLResponse(html, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def survey_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    """Show the survey form, or the thank-you view after a submission."""
    if has_completed(request):
        return render_thanks()

    return render_form(load_questions(db))


@router.post("/", response_class=HTMLResponse)
async def submit_survey(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Validate and store a survey submission.

    Every required question left empty is flagged; nothing is stored until
    the whole form is valid. A stored response is mirrored to the sheet in
    the background.
    """
    form = await request.form()
    questions = load_questions(db)

    if not questions:
        logger.info("Ignoring submission: no questions configured")
        return render_form(questions)

    result = validate_submission(questions, form)
    if not result.is_valid:
        return render_form(questions, result, form_error=result.form_error, status_code=422)

    try:
        record = record_response(db, result.answers)
    except SubmissionError as e:
        return render_form(questions, result, form_error=str(e), status_code=500)

    background_tasks.add_task(sync_response_to_sheet, ResponseCreatedEvent.from_record(record))

    response = render_thanks()
    mark_completed(response)
    return response
