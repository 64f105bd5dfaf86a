"""Errors returned by the HTTP API and their JSON bodies."""

from __future__ import annotations

from http import HTTPStatus
from typing import Dict

from aigc_history.db.client import DbError, InvalidDataError, NotFoundError


class ApiError(Exception):
    """An error with an HTTP status and a message for the client."""

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, str]:
        """The JSON body sent to the client."""
        return {"error": self.message}


class DatabaseApiError(ApiError):
    """A storage failure."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, error: DbError) -> None:
        self.error = error
        super().__init__(f"Database error: {error}")


class NotFoundApiError(ApiError):
    status_code = HTTPStatus.NOT_FOUND


class BadRequestError(ApiError):
    status_code = HTTPStatus.BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = HTTPStatus.UNAUTHORIZED


class ForbiddenError(ApiError):
    status_code = HTTPStatus.FORBIDDEN


class InternalError(ApiError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


def api_error_from_db(err: DbError) -> ApiError:
    """Map a storage error to the API error reported to the client."""
    if isinstance(err, NotFoundError):
        return NotFoundApiError("Resource not found")
    if isinstance(err, InvalidDataError):
        return BadRequestError(err.message)
    return DatabaseApiError(err)