"""Validated writes against the catalog store.

Validation and existence checks run before any mutating store call. The
one exception is an update whose record disappears between the caller's
read and the write: the store reports that no row was written, and the
gateway then decides between ``NotFoundError`` (record gone) and
``ConflictError`` (record still there, so something else went wrong).
"""

from __future__ import annotations

import logging

from bookstore.book import Book
from bookstore.errors import (
    BookstoreError,
    ConflictError,
    NotFoundError,
    StaleRecordError,
    ValidationError,
)
from bookstore.store import CatalogStore
from bookstore.validators import BookValidator

logger = logging.getLogger(__name__)


class MutationGateway:
    """Applies create, update and delete operations to a catalog store."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def get(self, book_id: int) -> Book:
        book = self.store.find(book_id)
        if book is None:
            raise NotFoundError(book_id)
        return book

    def exists(self, book_id: int) -> bool:
        return self.store.exists(book_id)

    def create(self, book: Book) -> Book:
        """Validate and persist a new book; any supplied id is ignored."""
        candidate = book.copy(id=None, created_at=None)
        BookValidator.validate(candidate)
        try:
            return self.store.add(candidate)
        except BookstoreError:
            raise
        except Exception as e:
            logger.exception("Failed to create book %r", candidate.title)
            raise ConflictError(f"Could not create book: {e}") from e

    def update(self, book_id: int, book: Book) -> Book:
        """Replace the book stored under ``book_id`` with ``book``."""
        if book.id != book_id:
            raise ValidationError("Id mismatch.", {"id": f"Payload id {book.id} does not match {book_id}."})
        BookValidator.validate(book)

        try:
            return self.store.update(book)
        except StaleRecordError as e:
            # Someone may have deleted the record since the caller read it
            if not self.exists(book_id):
                logger.info("Book %s vanished before update", book_id)
                raise NotFoundError(book_id) from e
            logger.exception("Update of book %s wrote no rows but the record exists", book_id)
            raise ConflictError(f"Could not update book {book_id}.") from e
        except BookstoreError:
            raise
        except Exception as e:
            logger.exception("Failed to update book %s", book_id)
            raise ConflictError(f"Could not update book {book_id}: {e}") from e

    def delete(self, book_id: int) -> None:
        if not self.exists(book_id):
            raise NotFoundError(book_id)
        try:
            removed = self.store.remove(book_id)
        except Exception as e:
            logger.exception("Failed to delete book %s", book_id)
            raise ConflictError(f"Could not delete book {book_id}: {e}") from e
        if not removed:
            # Deleted by a concurrent request after the existence check
            raise NotFoundError(book_id)
