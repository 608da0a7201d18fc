"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING

import pytest

from waitfor.probes.registry import reset_registry
from waitfor.utils.log_config import reset_log_config

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

pytest_plugins = ("pytest_asyncio",)

_PROXY_VARS = (
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY",
    "http_proxy", "https_proxy", "all_proxy",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Fresh default registry and log config, no proxies, no config env."""
    for var in _PROXY_VARS:
        monkeypatch.delenv(var, raising=False)
    for var in ("WAITFOR_TIMEOUT", "WAITFOR_EVERY", "WAITFOR_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    reset_registry()
    reset_log_config()
    yield
    reset_registry()
    reset_log_config()


@pytest.fixture
def free_port() -> int:
    """A local TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
async def tcp_listener() -> AsyncGenerator[int, None]:
    """Port of a local TCP server that accepts and closes connections."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield port
    server.close()
    await server.wait_closed()


class _StatusHandler(BaseHTTPRequestHandler):
    """Answers every GET with the server's configured status."""

    def do_GET(self) -> None:  # noqa: N802
        self.server.hits += 1
        self.send_response(self.server.status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        pass


class LocalHTTPServer(ThreadingHTTPServer):
    """Tiny threaded HTTP server with a switchable response status."""

    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _StatusHandler)
        self.status = 200
        self.hits = 0
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.server_address[1]}"

    def start(self) -> LocalHTTPServer:
        self._thread.start()
        return self

    def stop(self) -> None:
        self.shutdown()
        self.server_close()


@pytest.fixture
def http_server() -> Generator[LocalHTTPServer, None, None]:
    """Running local HTTP server, answering 200 until told otherwise."""
    server = LocalHTTPServer().start()
    yield server
    server.stop()
