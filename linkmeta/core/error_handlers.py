"""Render every failure as the JSON error envelope.

Raw exception text is only sent back when DEBUG is enabled.
"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from linkmeta.config import settings
from linkmeta.core.exceptions import UnfurlError
from linkmeta.middleware.request_id import REQUEST_ID_HEADER
from linkmeta.schemas.unfurl import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details if settings.DEBUG else None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


async def unfurl_error_handler(request: Request, exc: UnfurlError) -> JSONResponse:
    return error_response(exc.status_code, exc.label, exc.message, exc.details)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        400, "Bad Request", "Invalid request parameters", str(exc.errors())
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    try:
        label = HTTPStatus(exc.status_code).phrase
    except ValueError:
        label = "Error"
    message = str(exc.detail)
    if exc.status_code == 405:
        message = "Method not allowed. Use GET."
    return error_response(exc.status_code, label, message, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    rid = getattr(request.state, "request_id", None)
    return error_response(
        500,
        "Internal Server Error",
        "Failed to process request",
        str(exc),
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UnfurlError, unfurl_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
