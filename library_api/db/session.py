from __future__ import annotations

from typing import Any, Generator

from fastapi import Request
from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from library_api.core.config import Settings


def build_engine(app_settings: Settings) -> Engine:
    url = make_url(app_settings.database_url)
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = app_settings.db_pool_size
        kwargs["max_overflow"] = app_settings.db_max_overflow

    engine = create_engine(url, **kwargs)
    logger.bind(
        backend=url.get_backend_name(),
        host=url.host,
        port=url.port,
        user=url.username,
        dbname=url.database,
        sslmode=url.query.get("sslmode"),
    ).info("Database engine created")
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ping_database(engine: Engine) -> None:
    """Check out a pooled connection and run a trivial query; raises on failure."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
