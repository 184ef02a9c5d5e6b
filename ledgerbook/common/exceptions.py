"""Domain errors raised by the ledger, report and petty-cash services.

Each error carries the HTTP status the API layer renders it with. None of
them are transient: callers must not retry automatically.
"""
from fastapi import status


class LedgerbookError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerbookError):
    """Malformed input: negative amounts, missing fields, bad enum values."""
    error = "Validation Error"


class NotFoundError(LedgerbookError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"


class InvalidOperationError(LedgerbookError):
    """Operation not allowed in the current state."""
    status_code = status.HTTP_409_CONFLICT
    error = "Invalid Operation"


class InsufficientFundsError(LedgerbookError):
    error = "Insufficient Funds"


class NothingToReplenishError(LedgerbookError):
    error = "Nothing To Replenish"


class ConflictError(LedgerbookError):
    """A concurrent write on the same row won the race."""
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"
