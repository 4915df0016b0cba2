"""FastAPI application entry point for the survey service.

This module initializes the FastAPI application, sets up logging and
sessions, registers routers, and handles global exception handling.
"""

import secrets
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from survey_service.config import get_settings
from survey_service.logging_config import setup_logging, get_logger
from survey_service.models.database import StoreNotConfiguredError, init_db
from survey_service.routes import admin, health, reports, survey
from survey_service.services.template_renderer import get_template_renderer

# Initialize logger (will be configured during startup)
logger = get_logger(__name__)

STORE_NOT_CONFIGURED_MESSAGE = (
    "Database configuration is missing. Set DATABASE_URL to enable the survey."
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Create missing tables
    - Log which surfaces are enabled

    Shutdown:
    - Log shutdown event
    """
    settings = get_settings()
    setup_logging()

    if settings.is_store_configured:
        init_db()
    else:
        logger.error("DATABASE_URL is not set; survey and admin are disabled")

    if not settings.is_admin_configured:
        logger.error("SECRET_KEY is not set; admin dashboard is disabled")

    if not settings.is_sheets_configured:
        logger.warning("Sheet credentials are not set; sheet sync is disabled")

    logger.info(
        f"Survey service starting - "
        f"Environment: {settings.environment}, "
        f"Log Level: {settings.log_level}, "
        f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else ('configured' if settings.is_store_configured else 'missing')}"
    )

    yield

    logger.info("Survey service shutting down")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title="Survey Service",
        description="Survey collection with an admin dashboard and spreadsheet mirror",
        version="1.0.0",
        lifespan=lifespan
    )

    # Without SECRET_KEY admin is disabled; sessions still need some key
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key or secrets.token_urlsafe(32),
        session_cookie="survey_admin_session",
        same_site="lax",
        https_only=settings.is_production,
    )

    application.include_router(health.router, tags=["Health"])
    application.include_router(survey.router, tags=["Survey"])
    application.include_router(reports.router, tags=["Reports"])
    application.include_router(admin.router, tags=["Admin"])

    application.middleware("http")(request_id_middleware)
    application.add_exception_handler(StoreNotConfiguredError, store_not_configured_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    return application


async def request_id_middleware(request: Request, call_next):
    """Tag each request with an ID for log correlation."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.debug(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={"request_id": request_id}
    )
    return response


async def store_not_configured_handler(request: Request, exc: StoreNotConfiguredError):
    """Show the static configuration message instead of failing."""
    logger.warning(f"Database not configured for {request.method} {request.url.path}")

    if request.url.path.startswith(("/api", "/admin/api")):
        return JSONResponse(status_code=503, content={"detail": STORE_NOT_CONFIGURED_MESSAGE})

    html = get_template_renderer().render("config_error.html", {
        "title": "Survey",
        "message": STORE_NOT_CONFIGURED_MESSAGE,
    })
    return HTMLResponse(html, status_code=503)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking sensitive information.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSONResponse: Generic error response
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url}: {exc}",
        exc_info=True,
        extra={"request_id": getattr(request.state, "request_id", None)}
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )


app = create_app()
