import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from library_api.core.errors import BookNotFoundError, StorageError
from library_api.crud.books import (
    build_update_values,
    create_book,
    delete_book,
    get_book,
    list_books,
    update_book,
)
from library_api.models import Book
from library_api.schemas.books import BookCreateIn, BookUpdateIn


def _create(db_session, **overrides):
    fields = {"title": "Dune", "author": "Herbert", "isbn": "123"}
    fields.update(overrides)
    return create_book(db_session, payload=BookCreateIn(**fields))


def test_build_update_values_only_includes_present_fields():
    values = build_update_values(BookUpdateIn(title="New", available=False))
    assert values == {Book.title: "New", Book.available: False}


def test_build_update_values_skips_nulls_and_unset():
    assert build_update_values(BookUpdateIn()) == {}
    assert build_update_values(BookUpdateIn.model_validate({"isbn": None})) == {}


def test_build_update_values_keeps_falsy_values():
    values = build_update_values(BookUpdateIn(publication_year=0, available=False))
    assert values == {Book.publication_year: 0, Book.available: False}


def test_create_book_sets_defaults(db_session):
    book = _create(db_session)
    assert book.id > 0
    assert book.available is True
    assert book.publication_year == 0
    assert book.created_at == book.updated_at


def test_get_book_raises_not_found(db_session):
    with pytest.raises(BookNotFoundError) as excinfo:
        get_book(db_session, book_id=424242)
    assert str(excinfo.value) == "book with id 424242 not found"
    assert excinfo.value.book_id == 424242


def test_update_book_touches_only_given_columns(db_session):
    book = _create(db_session, publication_year=1965)
    created_at, updated_at = book.created_at, book.updated_at

    updated = update_book(db_session, book_id=book.id, payload=BookUpdateIn(author="Frank Herbert"))
    assert updated.author == "Frank Herbert"
    assert updated.title == "Dune"
    assert updated.isbn == "123"
    assert updated.publication_year == 1965
    assert updated.created_at == created_at
    assert updated.updated_at >= updated_at


def test_update_book_without_fields_is_a_fetch(db_session):
    book = _create(db_session)
    updated_at = book.updated_at

    same = update_book(db_session, book_id=book.id, payload=BookUpdateIn())
    assert same.id == book.id
    assert same.updated_at == updated_at


def test_update_and_delete_missing_book_raise_not_found(db_session):
    with pytest.raises(BookNotFoundError):
        update_book(db_session, book_id=424242, payload=BookUpdateIn(title="x"))
    with pytest.raises(BookNotFoundError):
        delete_book(db_session, book_id=424242)


def test_delete_book_removes_row(db_session):
    book = _create(db_session)
    delete_book(db_session, book_id=book.id)
    assert list_books(db_session) == []


def test_list_books_orders_by_creation_desc(db_session):
    a = _create(db_session, title="A")
    b = _create(db_session, title="B")
    assert [x.id for x in list_books(db_session)] == [b.id, a.id]


class _FailingSession:
    def __init__(self, exc):
        self.exc = exc
        self.rolled_back = False

    def add(self, obj):
        pass

    def commit(self):
        raise self.exc

    def execute(self, *args, **kwargs):
        raise self.exc

    def rollback(self):
        self.rolled_back = True


def test_driver_errors_become_storage_errors():
    db = _FailingSession(OperationalError("SELECT", {}, Exception("server closed the connection")))

    with pytest.raises(StorageError) as excinfo:
        list_books(db)
    assert str(excinfo.value) == "server closed the connection"
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert db.rolled_back


def test_constraint_violation_on_create_is_a_storage_error():
    db = _FailingSession(IntegrityError("INSERT", {}, Exception("null value in column")))

    with pytest.raises(StorageError):
        create_book(db, payload=BookCreateIn(title="Dune", author="Herbert", isbn="1"))
    assert db.rolled_back
