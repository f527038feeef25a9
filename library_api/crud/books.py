from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, Session

from library_api.core.errors import BookNotFoundError, StorageError
from library_api.models.book import Book, utcnow
from library_api.schemas.books import BookCreateIn, BookUpdateIn

# Columns a partial update may touch. Column names only ever come from here;
# values are always bound parameters.
UPDATABLE_COLUMNS: dict[str, InstrumentedAttribute[Any]] = {
    "title": Book.title,
    "author": Book.author,
    "isbn": Book.isbn,
    "publication_year": Book.publication_year,
    "available": Book.available,
}


def _storage_error(action: str, exc: SQLAlchemyError) -> StorageError:
    cause = getattr(exc, "orig", None) or exc
    logger.bind(action=action, error=str(cause)).error("Database statement failed")
    return StorageError(str(cause))


def create_book(db: Session, *, payload: BookCreateIn) -> Book:
    now = utcnow()
    book = Book(
        title=payload.title,
        author=payload.author,
        isbn=payload.isbn,
        publication_year=payload.publication_year or 0,
        available=True,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(book)
        db.commit()
        db.refresh(book)
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error("create book", exc) from exc

    logger.bind(book_id=book.id).debug("Inserted book row")
    return book


def get_book(db: Session, *, book_id: int) -> Book:
    try:
        book = db.execute(select(Book).where(Book.id == book_id)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error("get book", exc) from exc

    if book is None:
        raise BookNotFoundError(book_id)
    return book


def list_books(db: Session) -> list[Book]:
    """Return every book, most recently created first."""
    stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error("get books", exc) from exc


def build_update_values(payload: BookUpdateIn) -> dict[InstrumentedAttribute[Any], Any]:
    """Collect (column, value) pairs for the fields present in ``payload``.

    Fields that were not sent, or were sent as null, are left out.
    """
    present = payload.model_dump(exclude_unset=True, exclude_none=True)
    return {
        column: present[name]
        for name, column in UPDATABLE_COLUMNS.items()
        if name in present
    }


def update_book(db: Session, *, book_id: int, payload: BookUpdateIn) -> Book:
    values = build_update_values(payload)
    if not values:
        return get_book(db, book_id=book_id)

    values[Book.updated_at] = utcnow()
    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(values)
    )
    try:
        result = db.execute(stmt)
        if result.rowcount == 0:
            raise BookNotFoundError(book_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error("update book", exc) from exc

    logger.bind(book_id=book_id, columns=sorted(c.key for c in values)).debug("Updated book row")
    return get_book(db, book_id=book_id)


def delete_book(db: Session, *, book_id: int) -> None:
    try:
        result = db.execute(delete(Book).where(Book.id == book_id))
        if result.rowcount == 0:
            raise BookNotFoundError(book_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error("delete book", exc) from exc

    logger.bind(book_id=book_id).debug("Deleted book row")
