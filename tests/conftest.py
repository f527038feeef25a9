import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.core.config import Settings
from library_api.db.session import get_db
from library_api.main import create_app
from library_api.models import Base


@pytest.fixture(scope="session")
def engine():
    # Point DATABASE_URL at a scratch PostgreSQL database to run the suite
    # against the production driver, e.g. DATABASE_URL=postgresql+psycopg2://... pytest
    url = os.getenv("DATABASE_URL")
    if url:
        eng = create_engine(url, pool_pre_ping=True)
    else:
        # Default to in-memory SQLite so tests run without external services.
        eng = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)


@pytest.fixture()
def test_settings():
    return Settings(
        _env_file=None,
        APP_ENV="test",
        APP_VERSION="1.2.3",
        LOG_LEVEL="warning",
        ALLOWED_ORIGINS="http://localhost:3000,http://example.test",
    )


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    tx = connection.begin()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=connection
    )
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        tx.rollback()
        connection.close()


@pytest.fixture()
def app(engine, test_settings):
    return create_app(test_settings, engine=engine)


@pytest.fixture()
def client(app, db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_book(client):
    def _make(**overrides):
        body = {"title": "Dune", "author": "Frank Herbert", "isbn": "9780441013593"}
        body.update(overrides)
        resp = client.post("/api/v1/books", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _make
