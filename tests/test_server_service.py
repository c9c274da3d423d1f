"""Tests for ServerService layer."""
import threading
import time
import requests

from htmx_ssr.config import Config
from htmx_ssr.server.model import create_app, current_state
from htmx_ssr.server.options import ServerOptions
from htmx_ssr.services.server_service import ServerService


def create_router():
    app = create_app()

    @app.route("/")
    def index():
        return current_state().absolute_url("/home")

    return app


def test_server_service_start_stop():
    """Test that ServerService can start and stop the server."""
    service = ServerService(port=0, router=create_router())

    # Test initial status
    status = service.get_server_status()
    assert status["is_running"] is False
    assert status["base_url"] is None

    # Test start
    result = service.start_server()
    assert result["success"] is True
    assert result["base_url"].startswith("http://127.0.0.1:")
    assert not result["base_url"].endswith(":0")
    base_url = result["base_url"]

    # Verify server is running
    time.sleep(0.5)
    status = service.get_server_status()
    assert status["is_running"] is True
    assert status["base_url"] == base_url

    # Test HTTP request
    r = requests.get(f"{base_url}/", timeout=5)
    assert r.status_code == 200
    assert r.text == f"{base_url}/home"

    # Test stop
    result = service.stop_server()
    assert result["success"] is True
    assert "stopped" in result["message"]

    # Verify server is stopped
    status = service.get_server_status()
    assert status["is_running"] is False
    assert status["base_url"] is None


def test_server_service_uses_configured_base_url():
    """Test that an explicit base URL wins over the bound address."""
    service = ServerService(
        port=0,
        router=create_router(),
        options=ServerOptions(base_url="https://app.example.com"),
    )

    result = service.start_server()
    try:
        assert result["base_url"] == "https://app.example.com"
        assert service.get_server_status()["base_url"] == "https://app.example.com"
    finally:
        service.stop_server()


def test_server_service_double_start():
    """Test that starting an already running server returns False."""
    service = ServerService(port=0)

    # Start first time
    result1 = service.start_server()
    assert result1["success"] is True

    time.sleep(0.5)

    # Try to start again
    result2 = service.start_server()
    assert result2["success"] is False
    assert result2["base_url"] == result1["base_url"]

    # Cleanup
    service.stop_server()


def test_server_service_stop_when_not_running():
    """Test that stopping a non-running server returns appropriate message."""
    service = ServerService()

    result = service.stop_server()
    assert result["success"] is False
    assert "not running" in result["message"]


def test_server_service_bind_failure():
    """Test that a port already in use is reported instead of raised."""
    first = ServerService(port=0)
    started = first.start_server()
    port = int(started["base_url"].rsplit(":", 1)[1])

    try:
        result = ServerService(port=port).start_server()
        assert result["success"] is False
        assert result["base_url"] is None
    finally:
        first.stop_server()


def test_server_service_reports_draining(monkeypatch):
    """Test that a server still finishing requests is not reported as stopped."""
    entered = threading.Event()
    release = threading.Event()
    app = create_app()

    @app.route("/slow")
    def slow():
        entered.set()
        release.wait(10)
        return "done"

    monkeypatch.setattr(Config, "STOP_TIMEOUT", 0.5)
    service = ServerService(port=0, router=app)
    base_url = service.start_server()["base_url"]

    responses = []
    client = threading.Thread(target=lambda: responses.append(requests.get(f"{base_url}/slow", timeout=15)))
    client.start()
    assert entered.wait(5)

    result = service.stop_server()
    assert result["success"] is False
    assert "draining" in result["message"]

    status = service.get_server_status()
    assert status["is_running"] is True
    assert status["draining"] is True

    release.set()
    client.join(timeout=5)
    assert responses[0].text == "done"

    result = service.stop_server()
    assert result["success"] is True
    status = service.get_server_status()
    assert status["is_running"] is False
    assert status["draining"] is False
