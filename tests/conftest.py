import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


@pytest.fixture
def tcp_listener():
    """A local TCP listener; connects complete in the kernel backlog."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    yield "127.0.0.1", srv.getsockname()[1]
    srv.close()


@pytest.fixture
def closed_port():
    """A port on 127.0.0.1 that nothing listens on."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


class FakeClock:
    """Returns 0, step, 2*step, ... on successive calls."""
    def __init__(self, step):
        self.step = step
        self.calls = 0

    def __call__(self):
        value = self.calls * self.step
        self.calls += 1
        return value


class FakeResponse:
    def __init__(self, chunks, http_error=None):
        self._chunks = chunks
        self.http_error = http_error
        self.closed = False

    def raise_for_status(self):
        if self.http_error is not None:
            raise self.http_error

    def iter_content(self, chunk_size=1):
        yield from self._chunks

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []
        self.closed = False

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def fake_clock():
    return FakeClock


@pytest.fixture
def fake_http():
    return FakeResponse, FakeSession


class TrickleHandler(BaseHTTPRequestHandler):
    """Announces a large body, then sends 1000 bytes every 0.2 s."""
    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(10_000_000))
        self.end_headers()
        give_up = time.monotonic() + 10.0
        try:
            while time.monotonic() < give_up:
                self.wfile.write(b"x" * 1000)
                self.wfile.flush()
                time.sleep(0.2)
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format, *args):
        return


@pytest.fixture
def trickle_url():
    """URL of a local HTTP server that drips its payload slowly."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), TrickleHandler)
    thread = threading.Thread(
        target=server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True
    )
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/payload"
    server.shutdown()
    server.server_close()


@pytest.fixture
def direct_session():
    """A requests session that ignores proxy settings from the environment."""
    import requests

    session = requests.Session()
    session.trust_env = False
    yield session
    session.close()
