from library_api.models.base import Base
from library_api.models.book import Book


__all__ = [
    "Base",
    "Book",
]
