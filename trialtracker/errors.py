"""
TRIAL TRACKER - Error Taxonomy
===============================
Exceptions raised by the auth, database and trial layers.

The core never deals in HTTP status codes; the API layer maps each kind to a
response (see backend/app/core/errors.py).
"""

from typing import List, Optional


class TrialTrackerError(Exception):
    """Base class for every expected failure."""

    title = "Server Error"
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, messages: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.messages = list(messages or [])
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.title, "message": self.message}
        if self.messages:
            body["messages"] = self.messages
        return body


class ValidationError(TrialTrackerError):
    """Malformed or out-of-range input. Carries every violated rule."""

    title = "Validation Error"
    default_message = "Validation failed"

    def __init__(self, messages: List[str], message: Optional[str] = None):
        messages = list(messages)
        if message is None:
            message = messages[0] if len(messages) == 1 else f"{len(messages)} validation errors"
        super().__init__(message, messages)


class AuthenticationFailed(TrialTrackerError):
    title = "Authentication Failed"
    default_message = "Invalid credentials"


class NotAuthenticated(TrialTrackerError):
    title = "Unauthorized"
    default_message = "You must be logged in to access this resource"


class AlreadyAuthenticated(TrialTrackerError):
    title = "Already Authenticated"
    default_message = "You are already logged in"


class Forbidden(TrialTrackerError, PermissionError):
    title = "Forbidden"
    default_message = "You do not have permission to access this resource"


class NotFound(TrialTrackerError):
    title = "Not Found"
    default_message = "Resource not found"


class Conflict(TrialTrackerError):
    title = "Duplicate Error"
    default_message = "Resource already exists"


class InvalidIdentifier(TrialTrackerError):
    title = "Invalid ID"
    default_message = "Invalid identifier format"


class ServerError(TrialTrackerError):
    pass
