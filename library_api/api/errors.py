from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

INVALID_JSON = "Invalid JSON format"
INTERNAL_ERROR = "Internal server error"


def error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def validation_message(exc: RequestValidationError) -> str:
    """Turn pydantic errors into a single human readable line."""
    errors = exc.errors()
    parts: list[str] = []
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if err.get("type") == "json_invalid" or loc == ("body",):
            # Undecodable, empty, or non-object body.
            return INVALID_JSON
        field = ".".join(str(p) for p in loc[1:]) or str(loc[0] if loc else "request")
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "Invalid request body: " + "; ".join(parts)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = validation_message(exc)
    logger.bind(path=request.url.path, method=request.method, error=message).warning(
        "Request validation failed"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, message)


def register_exception_handlers(app: FastAPI) -> None:
    # Anything else is turned into a 500 by RequestIdMiddleware, inside CORS.
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
