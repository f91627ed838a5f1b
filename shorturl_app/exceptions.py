"""
Domain errors raised by the services.

Each error carries the HTTP status it maps to, so the API layer can render
every one of them with a single exception handler.
"""

from fastapi import status


class ShortenerError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShortenerError):
    """Bad or missing input (invalid URL, empty short code)"""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ShortenerError):
    """Custom short code is already taken"""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(ShortenerError):
    """No short link with the requested code"""

    status_code = status.HTTP_404_NOT_FOUND


class StorageError(ShortenerError):
    """Any failure of the relational store"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ExhaustedRetriesError(ShortenerError):
    """No unused short code found within the configured number of attempts"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
