"""
Graceful shutdown coordination.

The request tracker sits in front of the ASGI application and counts HTTP
requests in flight. The shutdown coordinator stops the listener, switches
the tracker into draining mode and waits for the in-flight count to reach
zero against a deadline. It never cancels a request.
"""

import asyncio
import logging
from typing import Callable

from starlette.types import ASGIApp, Receive, Scope, Send

from ...core.domain.errors import ShutdownTimeoutError
from ...core.interfaces.upload import TUS_RESUMABLE

logger = logging.getLogger(__name__)


class RequestTracker:
    """ASGI wrapper counting in-flight HTTP requests."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self._in_flight = 0
        self._draining = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def draining(self) -> bool:
        return self._draining

    def begin_draining(self) -> None:
        """Refuse every request that arrives from now on."""
        self._draining = True

    async def wait_idle(self) -> None:
        """Wait until no request is in flight."""
        await self._idle.wait()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if self._draining:
            await self._reject(send)
            return

        self._in_flight += 1
        self._idle.clear()
        try:
            await self.app(scope, receive, send)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    @staticmethod
    async def _reject(send: Send) -> None:
        # a kept-alive connection can still deliver requests after the listener closed
        await send({
            "type": "http.response.start",
            "status": 503,
            "headers": [
                (b"connection", b"close"),
                (b"content-length", b"0"),
                (b"tus-resumable", TUS_RESUMABLE.encode("ascii")),
            ],
        })
        await send({"type": "http.response.body", "body": b""})


class ShutdownCoordinator:
    """Drains in-flight requests against a deadline."""

    def __init__(self, tracker: RequestTracker, stop_accepting: Callable[[], None]) -> None:
        """
        Initialize shutdown coordinator.

        Args:
            tracker: Tracker wrapping the served application
            stop_accepting: Closes the listening sockets; must be idempotent
        """
        self._tracker = tracker
        self._stop_accepting = stop_accepting

    @property
    def tracker(self) -> RequestTracker:
        return self._tracker

    async def shutdown(self, timeout: float) -> None:
        """
        Stop accepting connections and wait for in-flight requests.

        Args:
            timeout: Seconds to wait for the drain

        Raises:
            ShutdownTimeoutError: If requests were still running at the deadline.
                They keep running; this call only stops waiting for them.
        """
        self._stop_accepting()
        self._tracker.begin_draining()
        logger.info(
            f"Shutting down: draining {self._tracker.in_flight} request(s), timeout {timeout}s")

        try:
            await asyncio.wait_for(self._tracker.wait_idle(), timeout)
        except asyncio.TimeoutError:
            in_flight = self._tracker.in_flight
            logger.warning(f"Drain deadline passed with {in_flight} request(s) still running")
            raise ShutdownTimeoutError(timeout, in_flight) from None

        logger.info("All in-flight requests drained")
