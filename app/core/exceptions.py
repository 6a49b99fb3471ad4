"""
Domain errors raised by the stores and the booking workflow.

Each error carries the HTTP status it maps to; the handlers in app.main
render them as ErrorResponse bodies.
"""

from fastapi import status

class ShareWheelsError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "bad_request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(ShareWheelsError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"

class NotAuthenticatedError(ShareWheelsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "not_authenticated"

class AuthorizationError(ShareWheelsError):
    """Caller is not a party allowed to perform the operation."""
    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"

class NotFoundError(ShareWheelsError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"

class ConflictError(ShareWheelsError):
    """Operation clashes with the current state of the ride or booking."""
    status_code = status.HTTP_409_CONFLICT
    error = "conflict"
