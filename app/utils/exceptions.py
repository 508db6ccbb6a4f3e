"""
Domain exceptions raised by the service layer.

Services never build HTTP responses; they raise one of these and the
handlers registered in ``app.main`` translate them into ``{"detail": ...}``
JSON bodies with the matching status code.
"""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """Base class for every expected application error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """No matching person, session, or account.

    Authentication checks pass ``status_code=401`` explicitly.
    """

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Uniqueness violation (duplicate account identity or card)."""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(AppError):
    """Persistence layer failure. The message shown to clients is generic."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Error interno de almacenamiento") -> None:
        super().__init__(message)
