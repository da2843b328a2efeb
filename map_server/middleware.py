from __future__ import annotations

import time
from typing import Optional

from starlette.datastructures import URL
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from common.logging_setup import get_logger
from common.utils import RunningStats, elapsed_ms


request_log = get_logger("map_server.requests")
timing_log = get_logger("map_server.timing")


class RequestLogMiddleware:
    """Logs the absolute URL of every HTTP request."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            request_log.info(str(URL(scope=scope)))
        await self.app(scope, receive, send)


class DiscoveryTimingMiddleware:
    """
    Measures discovery requests (paths under `path_prefix`) and logs
    "Response in X.XX ms" once the last body chunk has gone out.

    The response is passed through untouched.
    """

    def __init__(self, app: ASGIApp, path_prefix: str = "/maps-in-bounds/", stats: Optional[RunningStats] = None):
        self.app = app
        self.path_prefix = path_prefix
        self.stats = stats if stats is not None else RunningStats()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope["path"].startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status = 500
        done = False

        async def send_timed(message: Message) -> None:
            nonlocal status, done
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                done = True
                self._emit(scope["path"], status, elapsed_ms(start))

        try:
            await self.app(scope, receive, send_timed)
        finally:
            if not done:
                self._emit(scope["path"], status, elapsed_ms(start))

    def _emit(self, path: str, status: int, ms: float) -> None:
        self.stats.add(ms)
        timing_log.info(
            f"Response in {ms:.2f} ms",
            extra={"extra": {"elapsed_ms": round(ms, 2), "status": status, "path": path}},
        )
