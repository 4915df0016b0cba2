"""Report submission endpoint."""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from survey_service.models.database import get_db
from survey_service.schemas.report import REPORT_SAVED_MESSAGE
from survey_service.services.submissions import (
    ReportError,
    ReportValidationError,
    create_report,
)
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/reports", status_code=201)
def submit_report(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Store a visitor report.

    Returns:
        201 with the saved message; 422 with the validation message;
        500 when the write fails

    Example request:
        {
            "name": "Ada",
            "email": "ada@example.com",
            "reason": "Other",
            "description": "Asked for my password",
            "other_reason": "Phishing"
        }
    """
    try:
        report = create_report(db, payload)
    except ReportValidationError as e:
        return JSONResponse(status_code=422, content={"detail": str(e)})
    except ReportError as e:
        return JSONResponse(status_code=500, content={"detail": str(e)})

    return JSONResponse(
        status_code=201,
        content={"id": report.id, "message": REPORT_SAVED_MESSAGE},
    )
