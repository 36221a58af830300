"""
Application errors.

Services raise these instead of HTTPException so they can be used outside a
request. main.py registers a handler that renders them as JSON with the
status code each class carries.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map to an HTTP response"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> dict:
        body = {
            "error": self.__class__.__name__,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Malformed input: bad time format, day out of range, missing field"""

    status_code = 400


class TimeFormatError(ValidationError):
    pass


class TimeOrderError(ValidationError):
    pass


class TimeRangeError(ValidationError):
    pass


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str, details: Optional[Any] = None):
        self.resource = resource
        super().__init__(f"{resource} not found", details)


class ConflictError(AppError):
    status_code = 409


class StoreError(AppError):
    """
    Persistence failure. Wraps the underlying exception in `cause`.

    The client only sees the generic message; the cause is logged.
    """

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
