from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from library_api.api.deps import get_request_logger
from library_api.core.config import SERVICE_NAME
from library_api.db.session import get_engine, ping_database
from library_api.schemas.health import DatabaseHealthOut, HealthOut

router = APIRouter(tags=["health"])

# A degraded service still answers requests, so it keeps 200.
_STATUS_CODES = {
    "healthy": status.HTTP_200_OK,
    "degraded": status.HTTP_200_OK,
    "unhealthy": status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.get("/health", response_model=HealthOut)
def health(
    request: Request,
    response: Response,
    engine: Engine = Depends(get_engine),
    log=Depends(get_request_logger),
):
    """Report process liveness and database connectivity."""
    log = log.bind(endpoint="/health")
    log.debug("Health check requested")

    overall = "healthy"
    database = DatabaseHealthOut(status="healthy")
    try:
        ping_database(engine)
    except SQLAlchemyError as exc:
        cause = getattr(exc, "orig", None) or exc
        overall = "degraded"
        database = DatabaseHealthOut(status="unhealthy", error=str(cause) or type(cause).__name__)
        log.bind(error=database.error).error("Database health check failed")

    response.status_code = _STATUS_CODES[overall]
    log.bind(
        status=overall, db_status=database.status, status_code=response.status_code
    ).info("Health check completed")
    return HealthOut(
        status=overall,
        service=SERVICE_NAME,
        version=request.app.state.settings.app_version,
        timestamp=datetime.now(timezone.utc),
        database=database,
    )
