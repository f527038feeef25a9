from __future__ import annotations

from fastapi import HTTPException, Request, status

# books.id is a SERIAL (32-bit signed) column.
MAX_BOOK_ID = 2**31 - 1


def get_request_logger(request: Request):
    return request.app.state.logger.bind(
        method=request.method,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
    )


def valid_book_id(book_id: int) -> int:
    # The path convertor only lets digit sequences through; this rejects the
    # ones the database cannot represent.
    if book_id < 0 or book_id > MAX_BOOK_ID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid book ID")
    return book_id
