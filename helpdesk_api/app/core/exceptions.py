"""
Exceptions raised by the service layer.

Each exception carries the HTTP status code the API layer answers
with, so endpoints can translate any ``ServiceError`` uniformly.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    """Missing or malformed field, bad enum value, unparsable timestamp."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ServiceError):
    """No usable credential on the request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ServiceError):
    """Credential present, but the actor does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    """Referenced ticket, chat, message or record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
