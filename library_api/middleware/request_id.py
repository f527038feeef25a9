import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware

from library_api.api.errors import INTERNAL_ERROR, error_response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and writes one access log line for it.

    Unhandled errors become a 500 envelope here, so the response still passes
    through CORS and carries ``X-Request-Id``.
    """

    def __init__(self, app, logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request, call_next):
        req_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = req_id
        log = self.logger.bind(request_id=req_id, method=request.method, path=request.url.path)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("Unhandled error while serving request")
            response = error_response(500, INTERNAL_ERROR)
        response.headers["X-Request-Id"] = req_id
        log.bind(
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        ).info("HTTP request")
        return response
