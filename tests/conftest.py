import os
import signal
import sys
import threading

import pytest


def pytest_configure(config):
    root = os.path.dirname(os.path.dirname(__file__))
    src = os.path.join(root, "src")
    if src not in sys.path:
        sys.path.insert(0, src)


@pytest.fixture
def listener():
    from htmx_ssr.auto_reload import bind_tcp_listener

    sock = bind_tcp_listener(("127.0.0.1", 0))
    yield sock
    sock.close()


@pytest.fixture
def base_url(listener):
    host, port = listener.getsockname()[:2]
    return f"http://{host}:{port}"


@pytest.fixture
def serve_in_background():
    """Run `server.serve()` on a daemon thread, collecting what it raises."""
    def start(server):
        errors = []

        def run():
            try:
                server.serve()
            except Exception as e:
                errors.append(e)

        t = threading.Thread(target=run, daemon=True)
        t.start()
        return t, errors

    return start


@pytest.fixture
def restore_sigint():
    previous = signal.getsignal(signal.SIGINT)
    yield
    signal.signal(signal.SIGINT, previous)
