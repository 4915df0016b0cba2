"""Admin dashboard endpoints.

The HTML dashboard lives at /admin; everything under /admin/api requires a
signed-in admin. The dashboard keeps itself current through the
/admin/api/stream Server-Sent Events feed, which pushes the full dashboard
payload whenever questions, responses or reports change.
"""

import asyncio
import json
from typing import Annotated, AsyncGenerator, Optional

from fastapi import APIRouter, Body, Depends, Form, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, StreamingResponse
from sqlalchemy.orm import Session

from survey_service.config import get_settings
from survey_service.models.database import get_db
from survey_service.schemas.auth import LoginRequest
from survey_service.schemas.question import MoveRequest, QuestionRead, QuestionType, get_type_label
from survey_service.schemas.response import ResponseTableRead
from survey_service.services.aggregator import (
    REPORT_HEADER,
    build_all_chart_series,
    build_csv,
    build_report_rows,
    build_response_table,
    csv_filename,
    report_count_label,
)
from survey_service.services.auth import (
    ADMIN_NOT_CONFIGURED_MESSAGE,
    AuthenticationError,
    AuthorizationError,
    current_admin,
    require_admin,
    sign_in,
    sign_out,
)
from survey_service.services.dashboard import DashboardState, build_dashboard_payload
from survey_service.services.live_query import (
    load_questions,
    load_reports,
    load_responses,
    question_feed,
    report_feed,
    response_feed,
)
from survey_service.services.question_editor import (
    QuestionEditor,
    QuestionEditorError,
    QuestionNotFoundError,
    QuestionValidationError,
)
from survey_service.services.template_renderer import get_template_renderer
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin")

AdminEmail = Annotated[str, Depends(require_admin)]

PAGE_TITLE = "Survey admin"
NO_QUESTIONS_TO_EXPORT_MESSAGE = "No questions available to export."
STREAM_KEEPALIVE_SECONDS = 15.0


def render_login(message: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    html = get_template_renderer().render("admin_login.html", {
        "title": PAGE_TITLE,
        "message": message,
        "enabled": get_settings().is_admin_configured,
    })
    return HTMLResponse(html, status_code=status_code)


@router.get("", response_class=HTMLResponse)
def admin_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    """Sign-in page, or the dashboard for a signed-in admin.

    Opening the dashboard with no questions seeds the default set.
    """
    if not get_settings().is_admin_configured:
        return render_login(ADMIN_NOT_CONFIGURED_MESSAGE, status_code=503)

    email = current_admin(request)
    if email is None:
        return render_login()

    notice = None
    try:
        QuestionEditor(db).seed_default_questions()
    except QuestionEditorError as e:
        notice = str(e)

    payload = build_dashboard_payload(
        load_questions(db), load_responses(db), load_reports(db)
    )
    html = get_template_renderer().render("admin_dashboard.html", {
        "title": PAGE_TITLE,
        "admin_email": email,
        "notice": notice,
        "dashboard": payload,
        "question_types": [
            {"value": question_type.value, "label": get_type_label(question_type.value)}
            for question_type in QuestionType
        ],
    })
    return HTMLResponse(html)


@router.post("/login")
def login(
    request: Request,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    db: Session = Depends(get_db),
) -> Response:
    """Sign in with email and password.

    Returns:
        303 redirect to /admin on success; the sign-in page with a 401
        (bad credentials) or 403 (not an admin) otherwise
    """
    if not get_settings().is_admin_configured:
        return render_login(ADMIN_NOT_CONFIGURED_MESSAGE, status_code=503)

    try:
        credentials = LoginRequest(email=email, password=password)
        sign_in(request, db, credentials.email, credentials.password)
    except AuthenticationError as e:
        return render_login(str(e), status_code=401)
    except AuthorizationError as e:
        return render_login(str(e), status_code=403)

    try:
        QuestionEditor(db).seed_default_questions()
    except QuestionEditorError as e:
        logger.error(f"Seeding after sign-in failed: {e}")

    return RedirectResponse("/admin", status_code=303)


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    sign_out(request)
    return RedirectResponse("/admin", status_code=303)


@router.get("/api/questions")
def list_questions(admin: AdminEmail, db: Session = Depends(get_db)) -> list[QuestionRead]:
    return [QuestionRead.from_definition(question) for question in load_questions(db)]


@router.post("/api/questions", status_code=201)
def create_question(
    admin: AdminEmail,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
) -> QuestionRead:
    """Create a question at the end of the list.

    Example request:
        {"text": "Favourite colour", "type": "dropdown",
         "required": true, "options": "Red\\nGreen"}
    """
    try:
        question = QuestionEditor(db).create_question(payload)
    except QuestionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except QuestionEditorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return QuestionRead.from_definition(question)


@router.put("/api/questions/{question_id}")
def update_question(
    question_id: str,
    admin: AdminEmail,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
) -> QuestionRead:
    """Edit a question; its position is unchanged."""
    try:
        question = QuestionEditor(db).update_question(question_id, payload)
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except QuestionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except QuestionEditorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return QuestionRead.from_definition(question)


@router.delete("/api/questions/{question_id}", status_code=204)
def delete_question(question_id: str, admin: AdminEmail, db: Session = Depends(get_db)) -> Response:
    try:
        QuestionEditor(db).delete_question(question_id)
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except QuestionEditorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)


@router.post("/api/questions/{question_id}/move")
def move_question(
    question_id: str,
    move: MoveRequest,
    admin: AdminEmail,
    db: Session = Depends(get_db),
) -> dict:
    """Swap a question with its neighbour above or below.

    Returns:
        dict: ``moved`` is False when the question is already at that end
    """
    editor = QuestionEditor(db)
    try:
        moved = editor.move_question(question_id, move.direction)
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except QuestionEditorError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "moved": moved,
        "questions": [
            QuestionRead.from_definition(question).model_dump()
            for question in editor.list_questions()
        ],
    }


@router.get("/api/responses")
def response_table(admin: AdminEmail, db: Session = Depends(get_db)) -> ResponseTableRead:
    """Tabular view: one row per response, newest first."""
    table = build_response_table(load_questions(db), load_responses(db))
    return ResponseTableRead(header=table.header, rows=table.display_rows(), total=len(table.rows))


@router.get("/api/charts")
def chart_series(admin: AdminEmail, db: Session = Depends(get_db)) -> list[dict]:
    return [
        series.to_dict()
        for series in build_all_chart_series(load_questions(db), load_responses(db))
    ]


@router.get("/api/reports")
def report_table(admin: AdminEmail, db: Session = Depends(get_db)) -> dict:
    reports = load_reports(db)
    return {
        "header": list(REPORT_HEADER),
        "rows": build_report_rows(reports),
        "total": len(reports),
        "label": report_count_label(len(reports)),
    }


@router.get("/api/export.csv")
def export_csv(admin: AdminEmail, db: Session = Depends(get_db)) -> Response:
    """Download all responses as CSV."""
    questions = load_questions(db)
    if not questions:
        return JSONResponse(status_code=400, content={"detail": NO_QUESTIONS_TO_EXPORT_MESSAGE})

    content = build_csv(questions, load_responses(db))
    filename = csv_filename()
    logger.info(f"CSV export requested by {admin}: {filename}")

    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def format_sse(event: str, data: dict) -> str:
    """One Server-Sent Events message."""
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


@router.get("/api/stream")
async def dashboard_stream(
    request: Request,
    admin: AdminEmail,
    db: Session = Depends(get_db),
) -> StreamingResponse:
    """Push the dashboard payload on every change.

    Each event is ``dashboard`` with the full payload; comment lines keep
    idle connections open. Feed subscriptions are cancelled when the client
    disconnects.
    """
    for feed in (question_feed, response_feed, report_feed):
        if feed.snapshot is None:
            feed.refresh(db)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def enqueue(payload: dict) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, payload)

    state = DashboardState(on_change=enqueue)

    async def event_generator() -> AsyncGenerator[str, None]:
        state.attach()
        logger.info(f"Dashboard stream opened for {admin}")
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=STREAM_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue

                # Only the newest snapshot matters
                while not queue.empty():
                    payload = queue.get_nowait()
                yield format_sse("dashboard", payload)
        finally:
            state.detach()
            logger.info(f"Dashboard stream closed for {admin}")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
