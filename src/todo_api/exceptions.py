"""
Application error hierarchy.

Every error carries a client-safe message and the HTTP status it maps to.
A single handler registered in main.py turns them into ``{"error": message}``
JSON responses.

    TodoAPIError (base)          -> 500
    ├── InvalidIdentifierError   -> 400
    ├── ValidationError          -> 400
    ├── DecodeError              -> 400 or 500, chosen where it is raised
    ├── NoFieldsToUpdateError    -> 400
    ├── NotFoundError            -> 404 (500 on the get-by-id path)
    └── StorageError             -> 500
"""
from __future__ import annotations

from typing import Optional


class TodoAPIError(Exception):
    """Base class for all errors surfaced by the API."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidIdentifierError(TodoAPIError):
    """The path identifier is not a well-formed ObjectId."""

    status_code = 400
    default_message = "Invalid todo ID"


class ValidationError(TodoAPIError):
    """A required field is missing or empty."""

    status_code = 400
    default_message = "Todo Description cannot be empty"


class DecodeError(TodoAPIError):
    """The request body could not be decoded into the expected shape."""

    status_code = 400
    default_message = "Invalid request body"


class NoFieldsToUpdateError(TodoAPIError):
    status_code = 400
    default_message = "No valid fields to update"


class NotFoundError(TodoAPIError):
    status_code = 404
    default_message = "Todo not found"


class StorageError(TodoAPIError):
    """Any failure reported by the database driver."""

    status_code = 500
    default_message = "Storage operation failed"
