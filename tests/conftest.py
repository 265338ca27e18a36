"""
Shared fixtures: a relay attached to an ephemeral loopback port, driven one
readiness pass at a time from the test thread.
"""

import os
import socket
import time

import pytest

# Console handlers would bind to the first test's captured stdout
os.environ.setdefault("ENABLE_CONSOLE_LOG", "false")

from minirelay.server import RelayServer, make_listen_socket
from minirelay.utils import ServerConfig

PASS_TIMEOUT = 0.05
DEADLINE = 5.0


@pytest.fixture(autouse=True)
def _isolate_log_files(tmp_path, monkeypatch):
    # Rotating log files land in the cwd
    monkeypatch.chdir(tmp_path)


class Harness:
    def __init__(self, server: RelayServer):
        self.server = server
        self.port = server.listener.getsockname()[1]
        self.clients: list[socket.socket] = []

    def session_of(self, sock: socket.socket):
        peer = sock.getsockname()
        for session in self.server.registry.sessions():
            if session.addr == peer:
                return session
        raise AssertionError(f"no session for {peer}")

    def pump_until(self, predicate, deadline: float = DEADLINE):
        end = time.monotonic() + deadline
        while not predicate():
            assert time.monotonic() < end, "relay did not reach the expected state"
            self.server.run_once(timeout=PASS_TIMEOUT)

    def pump(self, passes: int = 5):
        for _ in range(passes):
            self.server.run_once(timeout=PASS_TIMEOUT)

    def connect(self) -> socket.socket:
        expected = len(self.server.registry) + 1
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=DEADLINE)
        self.clients.append(sock)
        self.pump_until(lambda: len(self.server.registry) == expected)
        return sock

    def flush(self):
        """Pump until every outbox has been handed to the kernel."""
        self.pump_until(lambda: not any(s.outbox for s in self.server.registry.sessions()))

    def read_exactly(self, sock: socket.socket, size: int) -> bytes:
        data = b""
        end = time.monotonic() + DEADLINE
        sock.settimeout(PASS_TIMEOUT)
        try:
            while len(data) < size:
                assert time.monotonic() < end, f"only received {data!r}"
                self.server.run_once(timeout=PASS_TIMEOUT)
                try:
                    chunk = sock.recv(size - len(data))
                except socket.timeout:
                    continue
                assert chunk, f"connection closed after {data!r}"
                data += chunk
        finally:
            sock.settimeout(DEADLINE)
        return data

    def expect(self, sock: socket.socket, expected: bytes):
        assert self.read_exactly(sock, len(expected)) == expected

    def assert_silent(self, sock: socket.socket):
        self.flush()
        self.pump()
        sock.settimeout(PASS_TIMEOUT)
        try:
            data = sock.recv(4096)
        except socket.timeout:
            return
        finally:
            sock.settimeout(DEADLINE)
        raise AssertionError(f"unexpected bytes: {data!r}")

    def close(self):
        for sock in self.clients:
            sock.close()
        self.server.close()


def make_harness(**config) -> Harness:
    server = RelayServer(name="test-relay", config=ServerConfig(**config))
    server.attach(make_listen_socket("127.0.0.1", 0))
    return Harness(server)


@pytest.fixture
def relay():
    harness = make_harness()
    yield harness
    harness.close()


@pytest.fixture
def lenient_relay():
    harness = make_harness(client_error_policy="disconnect")
    yield harness
    harness.close()
