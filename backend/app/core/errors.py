"""
Error Handlers
==============
Maps trialtracker error kinds to HTTP responses.

Body shape: {"error": <title>, "message": <text>, "messages": [...]}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trialtracker.errors import (
    AlreadyAuthenticated,
    AuthenticationFailed,
    Conflict,
    Forbidden,
    InvalidIdentifier,
    NotAuthenticated,
    NotFound,
    ServerError,
    TrialTrackerError,
    ValidationError,
)
from trialtracker.validation import format_errors

from app.config import settings

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationFailed: status.HTTP_401_UNAUTHORIZED,
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    AlreadyAuthenticated: status.HTTP_400_BAD_REQUEST,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_400_BAD_REQUEST,
    InvalidIdentifier: status.HTTP_400_BAD_REQUEST,
    ServerError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: TrialTrackerError) -> int:
    for kind in type(exc).__mro__:
        if kind in STATUS_CODES:
            return STATUS_CODES[kind]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_trial_tracker_error(request: Request, exc: TrialTrackerError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(format_errors(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_dict())


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if settings.is_development else "Something went wrong"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Server Error", "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrialTrackerError, handle_trial_tracker_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
