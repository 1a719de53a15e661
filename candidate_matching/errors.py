"""Request-level errors raised by the matching flows.

Each error carries the HTTP status it maps to; the API layer translates them
into JSON responses. Per-item completion-service failures are not errors:
they are folded into placeholder results by the analyzers.
"""

from typing import Any


class MatchingError(Exception):
    """Base class for errors that abort a matching request."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class BadRequestError(MatchingError):
    status_code = 400
    code = "BAD_REQUEST"


class ForbiddenError(MatchingError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(MatchingError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(MatchingError):
    status_code = 409
    code = "CONFLICT"


def bad_request(message: str, details: dict[str, Any] | None = None) -> BadRequestError:
    return BadRequestError(message, details)


def not_found(resource: str, id: str | None = None) -> NotFoundError:
    message = f"{resource} with id '{id}' not found" if id else f"{resource} not found"
    return NotFoundError(message, {"resource": resource, "id": id})


def forbidden(message: str = "Forbidden") -> ForbiddenError:
    return ForbiddenError(message)


def conflict(message: str, details: dict[str, Any] | None = None) -> ConflictError:
    return ConflictError(message, details)
