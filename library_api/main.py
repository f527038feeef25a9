from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from library_api.api.errors import register_exception_handlers
from library_api.api.router import api_router
from library_api.core.config import Settings, settings
from library_api.core.logging_config import configure_logging
from library_api.core.otel import init_otel
from library_api.db.session import build_engine, build_session_factory, ping_database
from library_api.middleware.request_id import RequestIdMiddleware
from library_api.middleware.timeout import RequestTimeoutMiddleware

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]


def create_app(app_settings: Settings = settings, engine: Engine | None = None) -> FastAPI:
    """Build the application.

    When ``engine`` is given the caller owns it and it is not disposed at
    shutdown.
    """
    logger = configure_logging(app_settings)
    owns_engine = engine is None
    if engine is None:
        engine = build_engine(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.bind(component="main").info("Starting Library Management System")
        try:
            ping_database(engine)
        except SQLAlchemyError as exc:
            logger.bind(error=str(exc)).critical("Failed to connect to database")
            raise
        logger.info("Database connection established successfully")
        logger.bind(health_check="/health", api_base="/api/v1").info(
            "Server endpoints configured"
        )
        try:
            yield
        finally:
            if owns_engine:
                engine.dispose()
                logger.info("Database connection pool closed")

    app = FastAPI(
        title="Library Management API",
        version=app_settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.logger = logger
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    register_exception_handlers(app)

    app.add_middleware(
        RequestTimeoutMiddleware,
        read_timeout=app_settings.server_read_timeout_secs,
        write_timeout=app_settings.server_write_timeout_secs,
    )
    app.add_middleware(RequestIdMiddleware, logger=logger.bind(component="access"))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        max_age=300,
    )
    logger.bind(origins=app_settings.allowed_origins).info("CORS configuration set")

    app.include_router(api_router)

    app.state.tracing = init_otel(app, app_settings)
    return app


app = create_app()
