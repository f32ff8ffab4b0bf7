"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import AuthError
from clients.billing_client import (
    BackendResponseError,
    BackendUnavailableError,
    NotAuthenticatedError,
)
from core.errors import (
    BillingValidationError,
    ReferenceDataUnavailableError,
    SubmissionInProgressError,
)

logger = logging.getLogger(__name__)


def _json(status_code: int, code: str, message: str, details: list[dict] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, details).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(BillingValidationError)
    async def billing_validation_handler(request: Request, exc: BillingValidationError):
        return _json(
            422,
            ErrorCodes.VALIDATION_ERROR,
            str(exc),
            [e.to_dict() for e in exc.errors],
        )

    @app.exception_handler(SubmissionInProgressError)
    async def submission_in_progress_handler(request: Request, exc: SubmissionInProgressError):
        return _json(409, ErrorCodes.SUBMISSION_IN_PROGRESS, str(exc))

    @app.exception_handler(ReferenceDataUnavailableError)
    async def reference_unavailable_handler(request: Request, exc: ReferenceDataUnavailableError):
        return _json(503, ErrorCodes.REFERENCE_DATA_UNAVAILABLE, str(exc))

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return _json(401, ErrorCodes.INVALID_CREDENTIALS, str(exc))

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
        return _json(401, ErrorCodes.NOT_AUTHENTICATED, exc.message or "Not authenticated")

    @app.exception_handler(BackendResponseError)
    async def backend_response_handler(request: Request, exc: BackendResponseError):
        if exc.status_code == 404:
            return _json(404, ErrorCodes.NOT_FOUND, exc.message)
        return _json(502, ErrorCodes.BACKEND_ERROR, exc.message)

    @app.exception_handler(BackendUnavailableError)
    async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError):
        return _json(503, ErrorCodes.BACKEND_UNAVAILABLE, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json(404, ErrorCodes.NOT_FOUND, message)
        return _json(400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _json(422, ErrorCodes.VALIDATION_ERROR, "Invalid request", details)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
