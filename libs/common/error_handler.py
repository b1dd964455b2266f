"""Global exception handlers for consistent error responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from libs.common.errors import CommerceError, NotFoundError, ValidationError
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _error_body(exc: CommerceError) -> dict:
    body = {"detail": exc.message, "error": type(exc).__name__}
    if exc.field:
        body["field"] = exc.field
    return body


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=422, content=_error_body(exc)
    )


async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content=_error_body(exc)
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register domain exception handlers on the app."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
