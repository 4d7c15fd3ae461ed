import sqlite3
import json
import logging
import os
from typing import List, Dict, Any

from bookstore.book import Book
from bookstore.validators import BookValidator

logger = logging.getLogger(__name__)


def fold_case(value):
    """Unicode case folding for search; SQLite's own lower() only folds ASCII."""
    return value.casefold() if isinstance(value, str) else value


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Open a new SQLite connection; callers close it when the operation ends."""
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    conn.create_function("fold_case", 1, fold_case, deterministic=True)
    # Better concurrent reads while another request writes
    if db_file != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def create_tables(db_file: str) -> None:
    """Create the books table and its indexes when they do not exist yet."""
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                genre TEXT,
                description TEXT,
                publish_year INTEGER,
                price REAL,
                cover_url TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Check for columns added after the first schema and add them (migration)
        cursor.execute("PRAGMA table_info(books)")
        columns = [column[1] for column in cursor.fetchall()]
        if "genre" not in columns:
            cursor.execute("ALTER TABLE books ADD COLUMN genre TEXT")
        if "price" not in columns:
            cursor.execute("ALTER TABLE books ADD COLUMN price REAL")
        if "cover_url" not in columns:
            cursor.execute("ALTER TABLE books ADD COLUMN cover_url TEXT")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_author ON books(author)")
        conn.commit()
    finally:
        conn.close()


def seed_from_json(store, json_file: str) -> int:
    """Load books from a JSON array file into an empty store.

    This is a one-time operation. It checks whether the store is empty and
    whether the JSON file exists before doing anything. Entries without a
    usable title or author are skipped. Returns the number of books added.
    """
    if store.count() > 0:
        return 0  # Store already has data, nothing to seed

    if not os.path.exists(json_file):
        logger.info("Seed file %s not found, skipping seed", json_file)
        return 0

    try:
        with open(json_file, "r", encoding="utf-8") as f:
            data: List[Dict[str, Any]] = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.error("Error reading or parsing %s: %s", json_file, e)
        return 0

    if not isinstance(data, list):
        logger.error("Seed file %s must contain a JSON array", json_file)
        return 0

    added = 0
    for item in data:
        if not isinstance(item, dict):
            continue
        book = Book.from_dict(item)
        if BookValidator.field_errors(book):
            logger.warning("Skipping invalid seed entry: %r", item.get("title"))
            continue
        store.add(book)
        added += 1

    logger.info("%d books seeded from %s", added, json_file)
    return added
