"""Catalog store: the persistence boundary for book records.

``CatalogStore`` defines the operations the rest of the core relies on.
``SqliteCatalogStore`` opens one connection per operation so concurrent
requests never share a connection or transaction. ``InMemoryCatalogStore``
keeps records in a dict and is handy for tests and throwaway runs.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from bookstore.book import Book
from bookstore.database import create_tables, fold_case, get_db_connection
from bookstore.errors import StaleRecordError

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "id, title, author, genre, description, publish_year, price, cover_url, created_at"


class CatalogStore(ABC):
    """Storage contract for book records."""

    @abstractmethod
    def find(self, book_id: int) -> Optional[Book]:
        ...

    @abstractmethod
    def list_all(self) -> List[Book]:
        ...

    @abstractmethod
    def search(self, text: Optional[str], offset: int, limit: int) -> List[Book]:
        """Return matching books ordered by title, then id, sliced by offset/limit."""

    @abstractmethod
    def count(self, text: Optional[str] = None) -> int:
        ...

    @abstractmethod
    def add(self, book: Book) -> Book:
        """Persist a new book and return it with its assigned id."""

    @abstractmethod
    def update(self, book: Book) -> Book:
        """Replace the stored record with ``book.id``.

        Raises ``StaleRecordError`` if no record was written.
        """

    @abstractmethod
    def remove(self, book_id: int) -> bool:
        ...

    @abstractmethod
    def exists(self, book_id: int) -> bool:
        ...

    def close(self) -> None:
        return None


def _matches(book: Book, needle: str) -> bool:
    return needle in fold_case(book.title) or needle in fold_case(book.author)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteCatalogStore(CatalogStore):
    """SQLite-backed store using the standard library driver."""

    def __init__(self, db_file: str) -> None:
        self.db_file = db_file
        create_tables(db_file)

    def _where(self, text: Optional[str]):
        needle = fold_case((text or "").strip())
        if not needle:
            return "", ()
        pattern = f"%{_escape_like(needle)}%"
        return (
            " WHERE fold_case(title) LIKE ? ESCAPE '\\' OR fold_case(author) LIKE ? ESCAPE '\\'",
            (pattern, pattern),
        )

    def find(self, book_id: int) -> Optional[Book]:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
            return Book.from_dict(dict(row)) if row else None
        finally:
            conn.close()

    def list_all(self) -> List[Book]:
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY title, id").fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    def search(self, text: Optional[str], offset: int, limit: int) -> List[Book]:
        where, params = self._where(text)
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(
                f"SELECT {BOOK_COLUMNS} FROM books{where} ORDER BY title, id LIMIT ? OFFSET ?",
                params + (limit, offset),
            ).fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    def count(self, text: Optional[str] = None) -> int:
        where, params = self._where(text)
        conn = get_db_connection(self.db_file)
        try:
            return conn.execute(f"SELECT COUNT(*) FROM books{where}", params).fetchone()[0]
        finally:
            conn.close()

    def add(self, book: Book) -> Book:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(
                """
                INSERT INTO books (title, author, genre, description, publish_year, price, cover_url)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (book.title, book.author, book.genre, book.description,
                 book.publish_year, book.price, book.cover_url),
            )
            conn.commit()
            new_id = cursor.lastrowid
        finally:
            conn.close()
        logger.info("Book %s added: %s", new_id, book.title)
        return self.find(new_id)

    def update(self, book: Book) -> Book:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(
                """
                UPDATE books
                SET title = ?, author = ?, genre = ?, description = ?,
                    publish_year = ?, price = ?, cover_url = ?
                WHERE id = ?
                """,
                (book.title, book.author, book.genre, book.description,
                 book.publish_year, book.price, book.cover_url, book.id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise StaleRecordError(book.id)
        finally:
            conn.close()
        updated = self.find(book.id)
        if updated is None:
            # Removed between the write and the read back
            raise StaleRecordError(book.id)
        logger.info("Book %s updated", book.id)
        return updated

    def remove(self, book_id: int) -> bool:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
            removed = cursor.rowcount > 0
        finally:
            conn.close()
        if removed:
            logger.info("Book %s removed", book_id)
        return removed

    def exists(self, book_id: int) -> bool:
        conn = get_db_connection(self.db_file)
        try:
            return conn.execute("SELECT 1 FROM books WHERE id = ?", (book_id,)).fetchone() is not None
        finally:
            conn.close()


class InMemoryCatalogStore(CatalogStore):
    """Dict-backed store; records are copied in and out so callers hold transient copies."""

    def __init__(self) -> None:
        self._books: Dict[int, Book] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _ordered(self, text: Optional[str]) -> List[Book]:
        needle = fold_case((text or "").strip())
        books = [b for b in self._books.values() if not needle or _matches(b, needle)]
        books.sort(key=lambda b: (b.title, b.id))
        return books

    def find(self, book_id: int) -> Optional[Book]:
        with self._lock:
            book = self._books.get(book_id)
            return book.copy() if book else None

    def list_all(self) -> List[Book]:
        with self._lock:
            return [b.copy() for b in self._ordered(None)]

    def search(self, text: Optional[str], offset: int, limit: int) -> List[Book]:
        with self._lock:
            return [b.copy() for b in self._ordered(text)[offset:offset + limit]]

    def count(self, text: Optional[str] = None) -> int:
        with self._lock:
            return len(self._ordered(text))

    def add(self, book: Book) -> Book:
        with self._lock:
            stored = book.copy(id=self._next_id, created_at=datetime.utcnow().isoformat(sep=" ", timespec="seconds"))
            self._books[stored.id] = stored
            self._next_id += 1
            return stored.copy()

    def update(self, book: Book) -> Book:
        with self._lock:
            current = self._books.get(book.id)
            if current is None:
                raise StaleRecordError(book.id)
            stored = book.copy(created_at=current.created_at)
            self._books[book.id] = stored
            return stored.copy()

    def remove(self, book_id: int) -> bool:
        with self._lock:
            return self._books.pop(book_id, None) is not None

    def exists(self, book_id: int) -> bool:
        with self._lock:
            return book_id in self._books
