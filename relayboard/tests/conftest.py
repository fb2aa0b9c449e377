from __future__ import annotations

import socket
import socketserver
import threading
import time

import pytest


class _BoardHandler(socketserver.BaseRequestHandler):
    """Stands in for the relay board: records every byte it receives."""

    def handle(self) -> None:
        server: "FakeBoardServer" = self.server  # type: ignore[assignment]
        with server.lock:
            server.connections += 1
        if server.greeting:
            self.request.sendall(server.greeting)
        if server.hang_up:
            return
        while True:
            try:
                data = self.request.recv(1024)
            except OSError:
                return
            if not data:
                return
            with server.lock:
                server.received.extend(data)


class FakeBoardServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), _BoardHandler)
        self.lock = threading.Lock()
        self.received = bytearray()
        self.connections = 0
        self.greeting = b""
        self.hang_up = False

    @property
    def port(self) -> int:
        return self.server_address[1]

    def data(self) -> bytes:
        with self.lock:
            return bytes(self.received)

    def wait_for_data(self, expected: bytes, timeout: float = 3.0) -> bytes:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if len(self.data()) >= len(expected):
                break
            time.sleep(0.01)
        return self.data()


@pytest.fixture
def board_server():
    server = FakeBoardServer()
    thread = threading.Thread(target=server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def closed_port() -> int:
    """A localhost port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port
