# services/server_service.py
import logging
import threading
from typing import Optional

from flask import Flask

from ..auto_reload import bind_tcp_listener
from ..config import Config
from ..controller.server_controller import Server
from ..server.errors import ServeError
from ..server.options import ServerOptions
from ..server.state import resolve

logger = logging.getLogger(__name__)


class ServerService:
    """
    Runs an HTMX SSR server in a background thread.
    Can be used by tests as well as by code embedding the server.
    """

    def __init__(
        self,
        host: str = Config.HOST,
        port: int = Config.PORT,
        router: Optional[Flask] = None,
        options: Optional[ServerOptions] = None,
    ):
        self.host = host
        self.port = port
        self.router = router
        self.options = options
        self._thread: Optional[threading.Thread] = None
        self._shutdown: Optional[threading.Event] = None
        self._base_url: Optional[str] = None
        self._lock = threading.Lock()

    def start_server(self):
        """Start the server and return information about the result"""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logger.info("Server already running")
                return {
                    "success": False,
                    "message": "Server already running",
                    "base_url": self._base_url,
                }

            try:
                listener = bind_tcp_listener((self.host, self.port))
            except OSError as e:
                logger.exception("Failed to bind the server listener: %s", e)
                return {
                    "success": False,
                    "message": f"Failed to start the server: {e}",
                    "base_url": None,
                }

            options = self.options if self.options is not None else ServerOptions()
            base_url = resolve(options, listener.getsockname()).base_url

            shutdown = threading.Event()
            server = Server(listener).with_options(options).with_graceful_shutdown(shutdown)
            if self.router is not None:
                server.with_router(self.router)

            def serve():
                try:
                    server.serve()
                except ServeError:
                    logger.exception("Server crashed")

            t = threading.Thread(target=serve, name="htmx-ssr-server", daemon=True)
            self._thread = t
            self._shutdown = shutdown
            self._base_url = base_url
            t.start()
            logger.info("Server started at %s", base_url)

            return {
                "success": True,
                "message": "Server started",
                "base_url": base_url,
            }

    def stop_server(self):
        """Stop the server, letting in-flight requests finish"""
        with self._lock:
            if self._thread is None:
                logger.info("Server not running")
                return {"success": False, "message": "Server was not running"}

            self._shutdown.set()
            self._thread.join(timeout=Config.STOP_TIMEOUT)
            if self._thread.is_alive():
                # Keep the thread so status keeps reporting it until it exits.
                logger.warning("Server still draining in-flight requests after %ss", Config.STOP_TIMEOUT)
                return {"success": False, "message": "Server is still draining in-flight requests"}

            self._thread = None
            self._shutdown = None
            self._base_url = None
            logger.info("Server stopped")

            return {"success": True, "message": "Server stopped"}

    def get_server_status(self):
        """Get the current state of the server"""
        with self._lock:
            is_running = self._thread is not None and self._thread.is_alive()
            return {
                "is_running": is_running,
                "draining": is_running and self._shutdown.is_set(),
                "base_url": self._base_url if is_running else None,
            }
