from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, StrictBool, StrictInt, StrictStr


class BookOut(BaseModel):
    id: int
    title: str
    author: str
    isbn: str
    publication_year: int
    available: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BookCreateIn(BaseModel):
    # Presence and emptiness are checked by the handler so the error message
    # stays the same for missing and blank fields.
    # Strict types: "1965" and 1965.0 are not years, "no" is not a boolean.
    title: StrictStr | None = None
    author: StrictStr | None = None
    isbn: StrictStr | None = None
    publication_year: StrictInt | None = None


class BookUpdateIn(BaseModel):
    title: StrictStr | None = None
    author: StrictStr | None = None
    isbn: StrictStr | None = None
    publication_year: StrictInt | None = None
    available: StrictBool | None = None


class BookEnvelope(BaseModel):
    message: str
    data: BookOut


class BookListEnvelope(BaseModel):
    message: str
    data: list[BookOut]


class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
