"""Error Handlers — map DocPanelError and request failures onto the REST envelope.

Invariants:
    - Every non-2xx body is {"error": {code, message, category, severity, ...}}
    - CONFIGURATION errors carry "action": "configure" and are never retryable;
      EXTERNAL_API errors with a retry hint set the Retry-After header
    - Log level follows severity: INFO/WARNING -> warning, ERROR -> error,
      CRITICAL -> error with traceback
    - The catch-all never leaks exception text to the client

Design Decisions:
    - session_id comes from the path params, so route-level failures are
      attributable without every route wrapping its own try/except
    - Stream failures never reach these handlers: they travel as error events
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docpanel.core.errors import DocPanelError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.WARNING,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.ERROR,
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocPanelError, docpanel_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def _session_of(request: Request) -> str | None:
    return request.path_params.get("session_id")


async def docpanel_error_handler(request: Request, exc: DocPanelError):
    if exc.context.session_id is None:
        exc.context.session_id = _session_of(request)
    logger.log(
        _LOG_LEVELS[exc.severity],
        "%s on %s: %s", exc.code, request.url.path, exc.message,
        exc_info=exc if exc.severity == ErrorSeverity.CRITICAL else None,
        extra={"error_code": exc.code, "session_id": exc.context.session_id},
    )

    body = exc.to_response()
    headers = {}
    if exc.category == ErrorCategory.CONFIGURATION:
        body["error"]["action"] = "configure"
        body["error"]["retryable"] = False
    elif exc.context.retry_after_ms is not None:
        headers["Retry-After"] = str(math.ceil(exc.context.retry_after_ms / 1000))
        body["error"]["retryable"] = True
    return JSONResponse(status_code=exc.http_status, content=body, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        "Rejected request body on %s: %s", request.url.path,
        ", ".join(d["field"] for d in details),
        extra={"error_code": "VALIDATION_ERROR", "session_id": _session_of(request)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s: %s", request.url.path, exc,
        exc_info=True, extra={"session_id": _session_of(request)},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
