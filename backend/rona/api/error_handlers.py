"""Error Handlers — every failure leaves the API in the same envelope.

Invariants:
    - Envelope: {"error": {"kind", "code", "message", "severity", ...}}
    - RonaError → status from its kind (400 / 404 / 409 / 410 / 500)
    - RequestValidationError → 400, kind "invalid", with per-field details
    - Any other exception → 500, kind "internal", no exception text in the body
    - Only INTERNAL failures log at error level; business outcomes log at info
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rona.core.errors import ErrorKind, ErrorSeverity, RonaError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the RonaError, validation and catch-all handlers."""
    app.add_exception_handler(RonaError, handle_rona_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def _envelope(
    kind: ErrorKind, message: str, severity: ErrorSeverity, **fields,
) -> dict:
    return {
        "error": {
            "kind": kind.value,
            "code": kind.value.upper(),
            "message": message,
            "severity": severity.value,
            **fields,
        },
    }


async def handle_rona_error(request: Request, exc: RonaError) -> JSONResponse:
    log = logger.error if exc.kind == ErrorKind.INTERNAL else logger.info
    log(
        f"{exc.kind.value}: {exc.message}",
        extra={
            "error_kind": exc.kind.value,
            "error_code": exc.code,
            "quicktest_id": exc.context.quicktest_id,
            "operation": exc.context.operation,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.info(
        f"Malformed request body: {len(details)} error(s)",
        extra={"error_kind": ErrorKind.INVALID.value, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            ErrorKind.INVALID, "Invalid request data", ErrorSeverity.WARNING,
            details=details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}",
        extra={"error_kind": ErrorKind.INTERNAL.value, "path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            ErrorKind.INTERNAL, "An unexpected error occurred", ErrorSeverity.CRITICAL,
        ),
    )
