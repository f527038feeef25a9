import asyncio

from loguru import logger
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

_BODY_METHODS = {"POST", "PUT", "PATCH"}


class RequestTimeoutMiddleware:
    """Bounds how long a request may take to arrive and to be answered.

    The downstream app runs as its own task. When it misses the response
    deadline the client gets a 503 straight away and the task is left to
    finish in the background; a sync handler cannot be interrupted, so it
    keeps its worker thread until it returns. Anything it sends afterwards
    is dropped.
    """

    def __init__(self, app: ASGIApp, read_timeout: float, write_timeout: float):
        self.app = app
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self._abandoned: set[asyncio.Task] = set()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        buffered: list[Message] = []
        if scope["method"] in _BODY_METHODS:
            try:
                await asyncio.wait_for(self._read_body(receive, buffered), timeout=self.read_timeout)
            except asyncio.TimeoutError:
                await JSONResponse(status_code=408, content={"error": "request body read timed out"})(
                    scope, receive, send
                )
                return

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        started = False
        abandoned = False

        async def guarded_send(message: Message) -> None:
            nonlocal started
            if abandoned:
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, replay, guarded_send))
        done, _ = await asyncio.wait({task}, timeout=self.write_timeout)
        if task in done or started:
            # A response that has begun streaming is allowed to complete.
            await task
            return

        abandoned = True
        self._abandoned.add(task)
        task.add_done_callback(self._reap)
        logger.bind(method=scope["method"], path=scope["path"], timeout=self.write_timeout).warning(
            "Request timed out"
        )
        await JSONResponse(status_code=503, content={"error": "request timed out"})(
            scope, receive, send
        )

    @staticmethod
    async def _read_body(receive: Receive, buffered: list[Message]) -> None:
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request" or not message.get("more_body", False):
                return

    def _reap(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("Abandoned request failed")
