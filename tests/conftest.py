"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lineserver import LineServer, ServerConfig
from lineserver.compute import ComputeService


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        idle_timeout=2.0,
        accept_poll_interval=0.1,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class LineClient:
    """Minimal blocking client speaking the line protocol."""

    def __init__(self, address, timeout: float = 5.0):
        self.sock = socket.create_connection(address, timeout=timeout)
        self._buffer = b""

    def send(self, line: str):
        self.sock.sendall(line.encode("utf-8") + b"\n")

    def send_raw(self, data: bytes):
        self.sock.sendall(data)

    def recv_line(self) -> Optional[str]:
        """Next response line, or None if the server closed first."""
        while b"\n" not in self._buffer:
            chunk = self.sock.recv(4096)
            if not chunk:
                return None
            self._buffer += chunk
        line, self._buffer = self._buffer.split(b"\n", 1)
        return line.decode("utf-8")

    def request(self, line: str) -> Optional[str]:
        self.send(line)
        return self.recv_line()

    def wait_closed(self) -> bool:
        """True once the server has closed its side (recv returns b"")."""
        try:
            while True:
                chunk = self.sock.recv(4096)
                if not chunk:
                    return True
                self._buffer += chunk
        except ConnectionResetError:
            return True

    def close(self):
        self.sock.close()


class RunningServer:
    """Runs a LineServer in a background thread."""

    def __init__(self, server: LineServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self):
        return self.server.address

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.listener.ready.wait(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    @property
    def stopped(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()


@pytest.fixture
def server_factory() -> Generator[Callable[..., RunningServer], None, None]:
    """Build and start servers with a custom config or service."""
    started = []

    def make(config: ServerConfig, service: Optional[ComputeService] = None) -> RunningServer:
        running = RunningServer(LineServer(config, service))
        running.start()
        started.append(running)
        return running

    yield make

    for running in started:
        running.stop()


@pytest.fixture
def running_server(config: ServerConfig, server_factory) -> RunningServer:
    """A started server with the default Fibonacci service."""
    return server_factory(config)


@pytest.fixture
def connect() -> Generator[Callable[..., LineClient], None, None]:
    """Open clients against a server; all are closed after the test."""
    clients = []

    def make(address, timeout: float = 5.0) -> LineClient:
        client = LineClient(address, timeout=timeout)
        clients.append(client)
        return client

    yield make

    for client in clients:
        client.close()
