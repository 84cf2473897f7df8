"""Global exception handlers: translate domain errors to HTTP responses.

Each domain exception maps to a specific HTTP status code and the
standard ``{"success": false, "message": "..."}`` envelope. Anything not
listed falls back to 500 with a generic message; the details only go to
the log.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rule_repo_manager.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidReferenceError,
    ReportNotFoundError,
    ReportNotReadyError,
    ReportPathIsDirectoryError,
    ReportUnavailableError,
    RuleRepoError,
    WorkflowNotFoundError,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: list[tuple[type[RuleRepoError], int]] = [
    (InvalidReferenceError, 422),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (WorkflowNotFoundError, 404),
    (ReportNotFoundError, 404),
    (ReportNotReadyError, 409),
    (ReportUnavailableError, 422),
    (ReportPathIsDirectoryError, 400),
    # RemoteRequestError, TransportError, RepositoryNotReadyError, ... → 500
    (RuleRepoError, 500),
]


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    for exc_type, code in _EXCEPTION_STATUS:

        def _make_handler(
            status_code: int,
        ):  # type: ignore[no-untyped-def]
            async def handler(request: Request, exc: Exception) -> JSONResponse:
                logger.warning("%s: %s", type(exc).__name__, exc)
                return _error_json(status_code, str(exc))

            return handler

        app.add_exception_handler(exc_type, _make_handler(code))

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
