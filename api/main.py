"""
FastAPI main application for the My Bookshelf API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config as api_config
from api.models import ErrorResponse, HealthResponse
from api.routes import search, shelf, users
from bookshelf.catalog import OpenLibraryClient
from bookshelf.database import BookshelfStore
from bookshelf.errors import BookshelfError
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

# Messages for type errors raised by pydantic itself rather than our validators
FIELD_MESSAGES = {
    "date": "Date must be in a valid date format.",
    "email": "Email must be a valid email address.",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting My Bookshelf API", environment=api_config.environment)

    store = BookshelfStore(config.mongodb_url, config.mongodb_database)
    try:
        await store.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    catalog = OpenLibraryClient()
    app.state.store = store
    app.state.catalog = catalog

    yield

    logger.info("Shutting down My Bookshelf API")
    await catalog.aclose()
    await store.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[api_config.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


def error_response(
    status_code: int,
    message: str,
    detail: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Shape an error into the envelope; detail is withheld outside development."""
    content = ErrorResponse(
        status=status_code,
        message=message,
        error=(detail or {}) if api_config.is_development() else {},
    )
    return JSONResponse(status_code=status_code, content=content.model_dump(), headers=headers)


def field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Flatten request validation errors into one entry per failing field."""
    errors = []
    for err in exc.errors():
        location, *path = err.get("loc") or ("body",)
        field = ".".join(str(part) for part in path)
        ctx_error = (err.get("ctx") or {}).get("error")
        if err.get("type") == "value_error" and ctx_error:
            msg = str(ctx_error)
        else:
            msg = FIELD_MESSAGES.get(field, err.get("msg"))
        errors.append({
            "type": "field",
            "value": err.get("input"),
            "msg": msg,
            "path": field,
            "location": location,
        })
    return errors


@app.exception_handler(BookshelfError)
async def bookshelf_exception_handler(request: Request, exc: BookshelfError):
    """Handle errors raised by the bookshelf core."""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, status_code=exc.status_code, error=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return error_response(exc.status_code, exc.message, exc.detail, headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid field values",
        {"errors": field_errors(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions such as unknown routes."""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        {"detail": str(exc)},
    )


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    store = getattr(request.app.state, "store", None)
    db_status = "unavailable"
    if store:
        health_info = await store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


app.include_router(users.router)
app.include_router(search.router)
app.include_router(shelf.wishlist_router)
app.include_router(shelf.shelf_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.is_development(),
        log_level="info"
    )
