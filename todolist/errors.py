"""Error taxonomy shared by the service layer and the HTTP handlers.

Each error carries the HTTP status it maps to and a caller-safe message.
Handlers in :mod:`todolist.main` render them as ``{"error": ..., "details": [...]}``.
"""
from typing import List, Optional


class TodoError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        self.message = message or self.message
        self.details = list(details) if details else None
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthenticated(TodoError):
    """Missing, malformed, tampered or expired credential. Sub-cases are not distinguished."""

    status_code = 401
    message = "Missing or invalid authentication token"


class ValidationFailed(TodoError):
    status_code = 400
    message = "Validation failed"


class BadRequest(TodoError):
    status_code = 400
    message = "Bad request"


class NotFound(TodoError):
    """Absent or owned by someone else; both look the same to the caller."""

    status_code = 404
    message = "Task not found"


class Conflict(TodoError):
    # The public contract reports duplicate registrations as a plain 400.
    status_code = 400
    message = "A user with this email already exists"


class Internal(TodoError):
    status_code = 500
    message = "Internal Server Error"
