from __future__ import annotations


class LibraryError(Exception):
    """Base class for errors raised by the data access layer."""


class BookNotFoundError(LibraryError):
    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"book with id {book_id} not found")


class StorageError(LibraryError):
    """The database rejected a statement or could not be reached."""
