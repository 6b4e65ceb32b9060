"""
HTTP server hosting the ASGI application.

The server binds its listening socket itself so that a bind failure is
reported as ServerStartupError to the caller instead of ending the process,
and routes SIGINT/SIGTERM into the shutdown coordinator.
"""

import asyncio
import logging
import socket
from types import FrameType
from typing import Callable, Optional

import uvicorn
from starlette.types import ASGIApp

from ...core.domain.errors import ServerStartupError, ShutdownTimeoutError
from .shutdown import RequestTracker, ShutdownCoordinator

logger = logging.getLogger(__name__)


class _DrainingServer(uvicorn.Server):
    """uvicorn server whose exit signals start a drain instead of exiting."""

    def __init__(self, config: uvicorn.Config, on_exit_signal: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_exit_signal = on_exit_signal
        self._exit_requested = False

    def handle_exit(self, sig: int, frame: Optional[FrameType]) -> None:
        if self._exit_requested:
            # second signal: stop waiting for anything
            logger.warning(f"Received signal {sig} again, forcing exit")
            self.should_exit = True
            self.force_exit = True
            return

        logger.info(f"Received signal {sig}, initiating graceful shutdown")
        self._exit_requested = True
        self._on_exit_signal()


class HTTPServer:
    """
    Serves an ASGI application with graceful shutdown.

    Usage::

        server = HTTPServer(app, "0.0.0.0", 1080, shutdown_timeout=30.0)
        await server.start()
        await server.wait_closed()
    """

    def __init__(
        self,
        app: ASGIApp,
        host: str,
        port: int,
        shutdown_timeout: float = 30.0,
        access_log: bool = False,
        log_level: str = "info"
    ):
        self._host = host
        self._port = port
        self._shutdown_timeout = shutdown_timeout

        self._tracker = RequestTracker(app)
        self._coordinator = ShutdownCoordinator(self._tracker, self._stop_accepting)

        config = uvicorn.Config(
            app=self._tracker,
            host=host,
            port=port,
            log_level=log_level.lower(),
            access_log=access_log,
            log_config=None,
            lifespan="on"
        )
        self._server = _DrainingServer(config, self._on_exit_signal)

        self._socket: Optional[socket.socket] = None
        self._bound_port: Optional[int] = None
        self._serve_task: Optional["asyncio.Task[None]"] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._signal_shutdown: Optional["asyncio.Task[None]"] = None

    @property
    def tracker(self) -> RequestTracker:
        return self._tracker

    @property
    def port(self) -> int:
        """Bound port; differs from the configured one when that was 0."""
        return self._bound_port or self._port

    async def start(self) -> None:
        """
        Bind the listening socket and start serving.

        Returns once the server accepts connections.

        Raises:
            ServerStartupError: If the socket cannot be bound or the
                application failed to start
        """
        if self._serve_task is not None:
            raise RuntimeError("Server already started")

        self._loop = asyncio.get_running_loop()
        self._socket = self._bind()
        self._bound_port = int(self._socket.getsockname()[1])
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[self._socket]))

        while not self._server.started:
            if self._serve_task.done():
                self._socket.close()
                error = self._serve_task.exception()
                raise ServerStartupError(
                    f"Server on {self._host}:{self._port} stopped during startup") from error
            await asyncio.sleep(0.01)

        logger.info(f"Listening on http://{self._host}:{self.port}")

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Stop accepting connections and drain in-flight requests.

        Args:
            timeout: Drain deadline in seconds; defaults to the configured one

        Raises:
            ShutdownTimeoutError: If requests were still running at the
                deadline. The server keeps finishing them in the background;
                use wait_closed() to wait for that.
        """
        if timeout is None:
            timeout = self._shutdown_timeout

        try:
            await self._coordinator.shutdown(timeout)
        finally:
            self._server.should_exit = True

        await self.wait_closed()

    async def wait_closed(self) -> None:
        """Wait until the server has stopped serving."""
        if self._serve_task is not None:
            await self._serve_task
        if self._signal_shutdown is not None and not self._signal_shutdown.done():
            await self._signal_shutdown

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self._host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._host, self._port))
        except OSError as e:
            sock.close()
            raise ServerStartupError(f"Could not bind {self._host}:{self._port}: {e}") from e

        sock.set_inheritable(True)
        return sock

    def _stop_accepting(self) -> None:
        for server in self._server.servers:
            server.close()

    def _on_exit_signal(self) -> None:
        if self._loop is None:
            self._server.should_exit = True
            return
        self._loop.call_soon_threadsafe(self._start_signal_shutdown)

    def _start_signal_shutdown(self) -> None:
        self._signal_shutdown = asyncio.create_task(self._shutdown_on_signal())

    async def _shutdown_on_signal(self) -> None:
        try:
            await self._coordinator.shutdown(self._shutdown_timeout)
        except ShutdownTimeoutError as e:
            logger.error(f"Graceful shutdown incomplete: {e}")
            self._server.force_exit = True
        finally:
            self._server.should_exit = True
