"""Error taxonomy surfaced to API callers as ``{"error": message}``."""
from __future__ import annotations


class ApiError(Exception):
    """Base class for failures reported to the caller."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request."


class InvalidInput(ValidationError):
    default_message = "Invalid input."


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found."


class NoActiveCustomers(NotFound):
    default_message = "No active customers found"


class NoActiveCollectors(NotFound):
    default_message = "No active collectors found"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Not authorized"


class Conflict(ApiError):
    """Business-rule violation."""

    status_code = 400
    default_message = "Request conflicts with current state."


class InsufficientFunds(Conflict):
    default_message = "Insufficient company cash"


class ExceedsBalance(Conflict):
    default_message = "Payment amount exceeds remaining balance"


class DuplicatePeriod(Conflict):
    default_message = "Invoices for this period already exist"


class ConflictActiveTask(Conflict):
    default_message = "You already have an active task"


class InvalidTransition(Conflict):
    default_message = "Cannot update stage further"
