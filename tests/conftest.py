# tests/conftest.py
import socket
import threading
import time
from contextlib import closing

import pytest
import uvicorn


@pytest.fixture
def anyio_backend():
    return "asyncio"


# --- helpers ---------------------------------------------------------------

def _free_port() -> int:
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class _BgServer:
    """Run a uvicorn server in a background thread; stop with should_exit=True."""
    def __init__(self, app, host: str, port: int):
        self.config = uvicorn.Config(app, host=host, port=port, log_level="error")
        self.server = uvicorn.Server(self.config)
        self.thread = threading.Thread(target=self.server.run, daemon=True)

    def start(self):
        self.thread.start()
        # Wait until port is accepting connections
        deadline = time.time() + 5
        while time.time() < deadline:
            try:
                with socket.create_connection((self.config.host, self.config.port), timeout=0.25):
                    return
            except OSError:
                time.sleep(0.05)
        raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.should_exit = True
        self.thread.join(timeout=3)


@pytest.fixture
def free_port():
    return _free_port


@pytest.fixture
def serve():
    """Start apps on background uvicorn servers; all are stopped at teardown."""
    started = []

    def _serve(app, port=None):
        port = port or _free_port()
        srv = _BgServer(app, "127.0.0.1", port)
        srv.start()
        started.append(srv)
        return f"http://127.0.0.1:{port}"

    yield _serve
    for srv in reversed(started):
        srv.stop()
