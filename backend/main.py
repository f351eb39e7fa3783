import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session, SQLModel
from starlette.exceptions import HTTPException as StarletteHTTPException

import sys
import os

sys.path.append(os.path.dirname(__file__))

from app.core.config import settings
from app.core.exceptions import AuthenticationError, SnippetShareError
from app.core.storage import Storage
from app.api import api_router

# Import all models to register them with SQLModel metadata
from app.models import User, UserSession, CodeSnippet  # noqa: F401

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# --- App Initialization ---
app = FastAPI(
    title="Snippet Share API",
    description="Share, browse, search and like code snippets",
    version="1.0.0",
)

# CORS middleware for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


# --- Exception Handlers ---
def error_response(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    content = {"error": error, "message": message}
    content.update(extra)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(SnippetShareError)
async def handle_app_error(request: Request, exc: SnippetShareError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} | {exc.context}")
    elif not isinstance(exc, AuthenticationError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.status_code, exc.error_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    error_codes = {400: "bad_request", 401: "unauthorized", 403: "forbidden", 404: "not_found",
                   405: "method_not_allowed", 503: "service_unavailable"}
    return error_response(
        exc.status_code, error_codes.get(exc.status_code, "http_error"), str(exc.detail)
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    first = errors[0] if errors else {}
    message = first.get("msg", "Invalid request data")
    return error_response(400, "validation_error", message, errors=errors)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "server_error", "An unexpected error occurred. Please try again later.")


# --- Event Handlers ---
@app.on_event("startup")
async def startup_event():
    logger.info("Starting up Snippet Share API...")

    # Import here to avoid circular imports
    from app.core.database import engine

    if not engine:
        logger.warning("Database engine not available. Skipping table creation.")
        logger.warning("Please check database connection and restart the service.")
        return

    # Create database tables if database is available
    if settings.AUTO_CREATE_TABLES:
        try:
            logger.info("Auto-creating database tables...")
            SQLModel.metadata.create_all(engine)
            logger.info("Database tables created successfully!")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            logger.error("Database functionality may not work properly.")
            return

    try:
        with Session(engine) as db:
            purged = Storage(db).purge_expired_sessions()
        logger.info(f"Purged {purged} expired sessions")
    except Exception as e:
        logger.error(f"Failed to purge expired sessions: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Snippet Share API...")


# --- API Endpoints ---
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Snippet Share API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint with database status."""
    from app.core.database import engine
    from sqlalchemy import text

    status = {"status": "healthy", "database": "unknown"}

    if engine:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            status["database"] = "connected"
        except Exception as e:
            status["database"] = f"error: {str(e)}"
            status["status"] = "degraded"
    else:
        status["database"] = "not_available"
        status["status"] = "degraded"

    return status
