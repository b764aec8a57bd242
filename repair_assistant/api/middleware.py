"""API middleware: CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``RepairAssistantError`` subclasses into JSON
``ErrorResponse`` bodies.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd → outermost
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# RequestLoggingMiddleware therefore sees the final status code, and the
# request id it binds is present in every log line of the request.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from repair_assistant.api.schemas import ErrorResponse
from repair_assistant.utils.errors import (
    AuthenticationError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    RepairAssistantError,
    ValidationError,
)
from repair_assistant.utils.logging import bind_request_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_STATUS_BY_ERROR: tuple[tuple[type[RepairAssistantError], int], ...] = (
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ValidationError, 400),
    (PayloadTooLargeError, 413),
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``; restrict
        it in ``config.yaml`` for production deployments.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    Binds a request id (taken from ``X-Request-ID`` when the proxy sets
    one) into the structlog context and echoes it in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        bind_request_context(request_id=request_id, path=str(request.url.path))

        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def status_for(exc: RepairAssistantError) -> int:
    """HTTP status for an application error (500 unless it is a client error)."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def error_response(exc: RepairAssistantError) -> JSONResponse:
    """Render *exc* as an :class:`ErrorResponse`.

    Client errors carry the message as ``error`` so the web client can
    show it as is.  Server errors carry the exception class as ``error``
    and the message as ``detail``.
    """
    status = status_for(exc)
    if status < 500:
        body = ErrorResponse(error=exc.message)
    else:
        body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``RepairAssistantError`` subclasses and return structured JSON errors.

    Stack traces are logged server-side only.  Exceptions outside the
    hierarchy bubble up to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except RepairAssistantError as exc:
            status = status_for(exc)
            log = _logger.warning if status < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status,
                path=str(request.url.path),
            )
            return error_response(exc)
