# hookbin/errors.py
from __future__ import annotations


class HookbinError(Exception):
    """Error that maps onto a JSON error response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "status": self.status_code}


class InvalidToken(HookbinError):
    status_code = 400
    message = (
        "Invalid token format. Tokens must be valid UUIDs "
        "(e.g., 550e8400-e29b-41d4-a716-446655440000)"
    )


class TokenNotFound(HookbinError):
    status_code = 404
    message = "Token not found"


class PayloadTooLarge(HookbinError):
    status_code = 413
    message = "Request body too large"


class InvalidLogCount(HookbinError):
    status_code = 400
    message = "Invalid log count. The count must be an integer"


class InternalFailure(HookbinError):
    status_code = 500
    message = "Internal server error"


class NotFound(HookbinError):
    status_code = 404
    message = "Resource not found"


class StorageFailure(Exception):
    """Raised by the storage layer for any database or serialization fault."""


class Conflict(StorageFailure):
    """Raised when inserting a row whose primary key already exists."""
