from typing import Dict, Optional

from bookstore.book import Book
from bookstore.errors import ValidationError


class TextValidator:
    """Basic text checks used for required book fields."""

    @staticmethod
    def is_blank(text: Optional[str]) -> bool:
        return text is None or not str(text).strip()


class BookValidator:
    """Field-level validation for books before they are persisted."""

    REQUIRED_FIELDS = ("title", "author")

    @staticmethod
    def field_errors(book: Book) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for field in BookValidator.REQUIRED_FIELDS:
            if TextValidator.is_blank(getattr(book, field, None)):
                errors[field] = f"The {field} field is required."
        return errors

    @staticmethod
    def validate(book: Book) -> None:
        errors = BookValidator.field_errors(book)
        if errors:
            raise ValidationError("Book validation failed.", errors)
