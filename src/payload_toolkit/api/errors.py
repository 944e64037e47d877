"""Exception handling that renders ingestion failures as error envelopes."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from ..ingest.ingest_errors import PayloadError
from .responses import JSONResponder

logger = logging.getLogger(__name__)
_responder = JSONResponder()


async def payload_error_handler(request: Request, exc: PayloadError) -> Response:
    """Convert :class:`PayloadError` exceptions into ``{"error": true, ...}`` bodies."""

    logger.info(
        "api.request.rejected",
        extra={
            "path": request.url.path,
            "failure_reason": exc.reason.value,
            "status_code": exc.status_code,
        },
    )
    return _responder.write_error(exc, exc.status_code)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render framework HTTP errors (404s, 405s) in the same envelope."""

    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.info(
        "api.request.http_error",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return _responder.write_error(message, exc.status_code, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    """Render query and path parameter validation failures as error envelopes."""

    errors = exc.errors()
    message = "invalid request"
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        message = f"invalid request: {where}: {first.get('msg', '')}"
    logger.info(
        "api.request.invalid",
        extra={"path": request.url.path, "error_count": len(errors)},
    )
    return _responder.write_error(message, status.HTTP_422_UNPROCESSABLE_ENTITY)


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope handlers for ingestion and framework failures."""

    app.add_exception_handler(PayloadError, payload_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)


__all__ = [
    "http_error_handler",
    "install_error_handlers",
    "payload_error_handler",
    "validation_error_handler",
]
