"""
Tests for request tracking, shutdown coordination and the HTTP server.
"""

import asyncio
import signal
import socket
from typing import Any, Dict, List
from unittest.mock import Mock

import httpx
import pytest
from fastapi import FastAPI

from cobalt_upload.core.domain.errors import ServerStartupError, ShutdownTimeoutError
from cobalt_upload.infrastructure.server.http import HTTPServer
from cobalt_upload.infrastructure.server.shutdown import RequestTracker, ShutdownCoordinator


def _gated_app(gate: asyncio.Event):
    async def app(scope, receive, send) -> None:
        await gate.wait()
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"done"})

    return app


async def _noop_receive() -> Dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


class _Recorder:
    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    async def __call__(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)


class TestRequestTracker:
    """In-flight request counting."""

    async def test_counts_in_flight_requests(self) -> None:
        gate = asyncio.Event()
        tracker = RequestTracker(_gated_app(gate))
        send = _Recorder()

        task = asyncio.create_task(tracker({"type": "http"}, _noop_receive, send))
        await asyncio.sleep(0)
        assert tracker.in_flight == 1

        gate.set()
        await task
        assert tracker.in_flight == 0
        assert send.messages[0]["status"] == 200

    async def test_lifespan_is_not_counted(self) -> None:
        seen = []

        async def app(scope, receive, send) -> None:
            seen.append(scope["type"])

        tracker = RequestTracker(app)
        await tracker({"type": "lifespan"}, _noop_receive, _Recorder())

        assert seen == ["lifespan"]
        assert tracker.in_flight == 0

    async def test_draining_rejects_new_requests(self) -> None:
        app = Mock()
        tracker = RequestTracker(app)
        tracker.begin_draining()
        send = _Recorder()

        await tracker({"type": "http"}, _noop_receive, send)

        app.assert_not_called()
        start = send.messages[0]
        assert start["status"] == 503
        assert (b"connection", b"close") in start["headers"]
        assert (b"tus-resumable", b"1.0.0") in start["headers"]

    async def test_counter_drops_when_app_fails(self) -> None:
        async def app(scope, receive, send) -> None:
            raise RuntimeError("handler crashed")

        tracker = RequestTracker(app)
        with pytest.raises(RuntimeError):
            await tracker({"type": "http"}, _noop_receive, _Recorder())

        assert tracker.in_flight == 0


class TestShutdownCoordinator:
    """Drain against a deadline."""

    async def test_idle_shutdown_returns_immediately(self) -> None:
        tracker = RequestTracker(Mock())
        stop_accepting = Mock()

        await ShutdownCoordinator(tracker, stop_accepting).shutdown(1.0)

        stop_accepting.assert_called_once_with()
        assert tracker.draining

    async def test_waits_for_fast_request(self) -> None:
        gate = asyncio.Event()
        tracker = RequestTracker(_gated_app(gate))
        request = asyncio.create_task(tracker({"type": "http"}, _noop_receive, _Recorder()))
        await asyncio.sleep(0)

        asyncio.get_running_loop().call_later(0.05, gate.set)
        await ShutdownCoordinator(tracker, Mock()).shutdown(1.0)

        assert request.done()
        assert tracker.in_flight == 0

    async def test_timeout_leaves_request_running(self) -> None:
        gate = asyncio.Event()
        tracker = RequestTracker(_gated_app(gate))
        send = _Recorder()
        request = asyncio.create_task(tracker({"type": "http"}, _noop_receive, send))
        await asyncio.sleep(0)

        with pytest.raises(ShutdownTimeoutError) as exc_info:
            await ShutdownCoordinator(tracker, Mock()).shutdown(0.05)

        assert exc_info.value.timeout == 0.05
        assert exc_info.value.in_flight == 1
        assert not request.done()

        gate.set()
        await request
        assert send.messages[0]["status"] == 200


class TestHTTPServer:
    """uvicorn backed server with graceful shutdown."""

    @pytest.fixture
    def app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/fast")
        async def fast() -> dict:
            await asyncio.sleep(0.2)
            return {"speed": "fast"}

        @app.get("/slow")
        async def slow() -> dict:
            await asyncio.sleep(2.5)
            return {"speed": "slow"}

        return app

    async def test_fast_request_completes_while_slow_one_times_out(self, app: FastAPI) -> None:
        server = HTTPServer(app, "127.0.0.1", 0, shutdown_timeout=1.0)
        await server.start()
        assert server.port != 0

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}", timeout=10.0) as client:
            fast = asyncio.create_task(client.get("/fast"))
            slow = asyncio.create_task(client.get("/slow"))
            await asyncio.sleep(0.1)
            assert server.tracker.in_flight == 2

            with pytest.raises(ShutdownTimeoutError) as exc_info:
                await server.shutdown(1.0)

            assert exc_info.value.in_flight == 1
            fast_response = await fast
            assert fast_response.status_code == 200
            assert fast_response.json() == {"speed": "fast"}

            slow_response = await slow
            assert slow_response.status_code == 200

        await server.wait_closed()

    async def test_idle_shutdown(self, app: FastAPI) -> None:
        server = HTTPServer(app, "127.0.0.1", 0)
        await server.start()

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}") as client:
            response = await client.get("/docs")
            assert response.status_code == 200

        await server.shutdown(1.0)

        with pytest.raises(httpx.ConnectError):
            async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}") as client:
                await client.get("/fast")

    async def test_bind_failure_is_startup_error(self, app: FastAPI) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen()
            port = taken.getsockname()[1]

            server = HTTPServer(app, "127.0.0.1", port)
            with pytest.raises(ServerStartupError):
                await server.start()

    async def test_exit_signal_drains(self, app: FastAPI) -> None:
        server = HTTPServer(app, "127.0.0.1", 0, shutdown_timeout=1.0)
        await server.start()

        server._server.handle_exit(signal.SIGTERM, None)
        await asyncio.wait_for(server.wait_closed(), 5.0)

        assert server.tracker.draining

    async def test_second_signal_forces_exit(self, app: FastAPI) -> None:
        server = HTTPServer(app, "127.0.0.1", 0, shutdown_timeout=1.0)
        await server.start()

        server._server.handle_exit(signal.SIGINT, None)
        server._server.handle_exit(signal.SIGINT, None)

        assert server._server.force_exit
        await asyncio.wait_for(server.wait_closed(), 5.0)
