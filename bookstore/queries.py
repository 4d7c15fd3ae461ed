"""Paginated, case-insensitive search over the catalog store."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

from bookstore.book import Book
from bookstore.config import settings
from bookstore.store import CatalogStore


@dataclass
class BookPage:
    """One page of search results plus the paging metadata used to render it."""

    items: List[Book] = field(default_factory=list)
    search: Optional[str] = None
    page: int = 1
    page_size: int = 5
    total: int = 0
    total_pages: int = 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> dict:
        return {
            "items": [b.to_dict() for b in self.items],
            "search": self.search,
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "total_pages": self.total_pages,
        }


class QueryBuilder:
    """Builds a filtered, title-ordered, paginated view of the store.

    The filter is a case-insensitive substring match on title or author.
    Ordering is applied before slicing so pages stay stable for a fixed
    data set. Pages past the end come back empty.
    """

    def __init__(self, store: CatalogStore, default_page_size: Optional[int] = None,
                 max_page_size: Optional[int] = None) -> None:
        self.store = store
        self.default_page_size = default_page_size or settings.default_page_size
        self.max_page_size = max_page_size or settings.max_page_size

    def _normalize_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None or page_size < 1:
            return self.default_page_size
        return min(page_size, self.max_page_size)

    def search(self, query: Optional[str] = None, page: int = 1, page_size: Optional[int] = None) -> BookPage:
        text = query.strip() if query and query.strip() else None
        size = self._normalize_page_size(page_size)
        page = max(1, page or 1)

        total = self.store.count(text)
        total_pages = math.ceil(total / size)
        skip = (page - 1) * size
        items = self.store.search(text, skip, size) if skip < total else []

        return BookPage(
            items=items,
            search=text,
            page=page,
            page_size=size,
            total=total,
            total_pages=total_pages,
        )
