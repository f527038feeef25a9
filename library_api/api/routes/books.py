from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from library_api.api.deps import get_request_logger, valid_book_id
from library_api.core.errors import BookNotFoundError, StorageError
from library_api.crud.books import create_book, delete_book, get_book, list_books, update_book
from library_api.db.session import get_db
from library_api.schemas.books import (
    BookCreateIn,
    BookEnvelope,
    BookListEnvelope,
    BookOut,
    BookUpdateIn,
    ErrorOut,
    MessageOut,
)

router = APIRouter(prefix="/api/v1", tags=["books"])

_ERRORS = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    500: {"model": ErrorOut},
}

_TEXT_FIELDS = ("title", "author", "isbn")


def _clean(value: str | None) -> str:
    return (value or "").strip()


@router.post(
    "/books",
    response_model=BookEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
def add_book(
    payload: BookCreateIn,
    db: Session = Depends(get_db),
    log=Depends(get_request_logger),
):
    log = log.bind(handler="add_book")
    log.info("Creating new book")

    cleaned = {name: _clean(getattr(payload, name)) for name in _TEXT_FIELDS}
    if not all(cleaned.values()):
        log.bind(**cleaned).warning("Validation failed: missing required fields")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title, author, and ISBN are required",
        )

    try:
        book = create_book(db, payload=payload.model_copy(update=cleaned))
    except StorageError as exc:
        log.bind(**cleaned, error=str(exc)).error("Failed to create book in database")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create book: {exc}",
        )

    log.bind(book_id=book.id, title=book.title, author=book.author).info(
        "Book created successfully"
    )
    return BookEnvelope(message="Book created successfully", data=BookOut.model_validate(book))


@router.get("/books", response_model=BookListEnvelope, responses={500: {"model": ErrorOut}})
def read_books(
    db: Session = Depends(get_db),
    log=Depends(get_request_logger),
):
    log = log.bind(handler="read_books")
    try:
        books = list_books(db)
    except StorageError as exc:
        log.bind(error=str(exc)).error("Failed to retrieve books")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve books: {exc}",
        )

    log.bind(count=len(books)).debug("Books retrieved")
    return BookListEnvelope(
        message="Books retrieved successfully",
        data=[BookOut.model_validate(b) for b in books],
    )


@router.get("/books/{book_id:int}", response_model=BookEnvelope, responses=_ERRORS)
def read_book(
    book_id: int = Depends(valid_book_id),
    db: Session = Depends(get_db),
    log=Depends(get_request_logger),
):
    log = log.bind(handler="read_book", book_id=book_id)
    try:
        book = get_book(db, book_id=book_id)
    except BookNotFoundError as exc:
        log.info("Book not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        log.bind(error=str(exc)).error("Failed to retrieve book")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve book: {exc}",
        )

    return BookEnvelope(message="Book retrieved successfully", data=BookOut.model_validate(book))


@router.put("/books/{book_id:int}", response_model=BookEnvelope, responses=_ERRORS)
def edit_book(
    payload: BookUpdateIn,
    book_id: int = Depends(valid_book_id),
    db: Session = Depends(get_db),
    log=Depends(get_request_logger),
):
    log = log.bind(handler="edit_book", book_id=book_id)

    cleaned = {}
    for name in _TEXT_FIELDS:
        value = getattr(payload, name)
        if value is None:
            continue
        cleaned[name] = _clean(value)
        if not cleaned[name]:
            log.bind(field=name).warning("Validation failed: empty field")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Title, author, and ISBN cannot be empty",
            )

    try:
        book = update_book(db, book_id=book_id, payload=payload.model_copy(update=cleaned))
    except BookNotFoundError as exc:
        log.info("Book not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        log.bind(error=str(exc)).error("Failed to update book in database")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update book: {exc}",
        )

    log.info("Book updated successfully")
    return BookEnvelope(message="Book updated successfully", data=BookOut.model_validate(book))


@router.delete("/books/{book_id:int}", response_model=MessageOut, responses=_ERRORS)
def remove_book(
    book_id: int = Depends(valid_book_id),
    db: Session = Depends(get_db),
    log=Depends(get_request_logger),
):
    log = log.bind(handler="remove_book", book_id=book_id)
    try:
        delete_book(db, book_id=book_id)
    except BookNotFoundError as exc:
        log.info("Book not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        log.bind(error=str(exc)).error("Failed to delete book in database")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete book: {exc}",
        )

    log.info("Book deleted successfully")
    return MessageOut(message="Book deleted successfully")
