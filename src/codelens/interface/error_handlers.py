"""Global exception handlers — translate domain errors to HTTP responses.

Each domain exception maps to a specific HTTP status code and the
standard ``{"status": "error", "message": "..."}`` envelope.  Upstream
failures are logged with their detail but answered with a generic message.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from codelens.domain.exceptions import (
    CodeLensError,
    ConfigurationError,
    InvalidInputError,
    MalformedResponseError,
    NotFoundOrNoAccessError,
    StorageError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

_MALFORMED_MESSAGE = "The model returned an unusable analysis. Please try again."
_UPSTREAM_MESSAGE = "Failed to analyze repository"
_STORAGE_MESSAGE = "Storage request failed"

# (exception, status, public message or None to pass str(exc) through)
_EXCEPTION_STATUS: list[tuple[type[CodeLensError], int, str | None]] = [
    (ConfigurationError, 500, None),
    (InvalidInputError, 400, None),
    (NotFoundOrNoAccessError, 404, None),
    (MalformedResponseError, 502, _MALFORMED_MESSAGE),
    (StorageError, 502, _STORAGE_MESSAGE),
    (UpstreamError, 502, _UPSTREAM_MESSAGE),
]


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    for exc_type, code, public_message in _EXCEPTION_STATUS:

        def _make_handler(
            status_code: int,
            message: str | None,
        ):  # type: ignore[no-untyped-def]
            async def handler(request: Request, exc: Exception) -> JSONResponse:
                if status_code >= 500:
                    logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
                else:
                    logger.warning("%s: %s", type(exc).__name__, exc)
                return _error_json(status_code, message or str(exc))

            return handler

        app.add_exception_handler(exc_type, _make_handler(code, public_message))

    # ── Pydantic / FastAPI validation errors ────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(p) for p in err.get("loc", []))
            messages.append(f"{loc}: {err.get('msg', 'validation error')}")
        return _error_json(422, "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return _error_json(500, "An unexpected error occurred. Please try again later.")
