"""Error types shared by the catalog core.

``ValidationError`` and ``NotFoundError`` are expected, caller-facing
outcomes. ``ConflictError`` wraps an unexpected persistence failure during
a write and is treated as a server fault. ``ExternalServiceError`` and
``ConfigurationError`` never leave the summary enricher.
"""

from __future__ import annotations

from typing import Dict, Optional


class BookstoreError(Exception):
    """Base class for catalog errors."""


class ValidationError(BookstoreError):
    """Missing or malformed input, including an id mismatch on update."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors: Dict[str, str] = dict(errors or {})


class NotFoundError(BookstoreError):
    """No record exists with the requested id."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} not found.")
        self.book_id = book_id


class ConflictError(BookstoreError):
    """A write failed for a reason other than a missing record."""


class StaleRecordError(BookstoreError):
    """The store affected no rows when writing a record by id."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"No rows affected when writing book {book_id}.")
        self.book_id = book_id


class ExternalServiceError(BookstoreError):
    """The text-generation provider could not be reached or answered badly.

    ``body`` holds the provider's raw response text when it answered with a
    non-success status; it is ``None`` for transport failures and timeouts.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(BookstoreError):
    """A required setting for an optional feature is missing."""
