from __future__ import annotations


def _text(value) -> str:
    # Seed files may carry numbers, e.g. a title of 1984
    return str(value).strip() if value is not None else ""


class Book:
    """Represents a single book record in the catalog."""

    def __init__(self, title: str, author: str, genre: str | None = None, id: int | None = None,
                 description: str | None = None, publish_year: int | None = None,
                 price: float | None = None, cover_url: str | None = None,
                 created_at: str | None = None) -> None:
        self.id = id
        self.title = _text(title)
        self.author = _text(author)
        self.genre = genre.strip() if isinstance(genre, str) and genre.strip() else None

        # Descriptive fields, stored and echoed as-is
        self.description = description
        self.publish_year = publish_year
        self.price = price
        self.cover_url = cover_url
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def copy(self, **changes) -> "Book":
        data = self.to_dict()
        data.update(changes)
        return Book.from_dict(data)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "genre": self.genre,
            "description": self.description,
            "publish_year": self.publish_year,
            "price": self.price,
            "cover_url": self.cover_url,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # SQLite rows hand back numbers as-is; seed files may carry strings
        year = data.get("publish_year")
        if isinstance(year, str):
            year = int(year) if year.strip().isdigit() else None
        elif isinstance(year, bool) or not isinstance(year, (int, type(None))):
            year = None

        price = data.get("price")
        if isinstance(price, str):
            try:
                price = float(price)
            except ValueError:
                price = None
        elif isinstance(price, bool) or not isinstance(price, (int, float, type(None))):
            price = None

        return Book(
            id=data.get("id"),
            title=data.get("title") or "",
            author=data.get("author") or "",
            genre=data.get("genre"),
            description=data.get("description"),
            publish_year=year,
            price=price,
            cover_url=data.get("cover_url"),
            created_at=data.get("created_at"),
        )
