"""HTTP stack layer.

This module adapts Flask and Werkzeug to the server lifecycle.
Exposes:
- create_app() -> empty Flask app used as the routing table
- with_state(app, state) -> attaches the shared ServerState to an app
- current_state() -> the ServerState of the app handling the current request
- create_server(app, listener) -> threaded WSGI server over an already bound socket

The server drains on close: once `serve_forever` stops accepting connections
it joins every request thread before returning.
"""
import socket
import socketserver

from flask import Flask, current_app
from werkzeug.serving import ThreadedWSGIServer

from .state import ServerState

STATE_EXTENSION = "htmx_ssr.state"


def create_app(import_name: str = "htmx_ssr") -> Flask:
    """Create and return an empty Flask application to register routes on."""
    return Flask(import_name)


def with_state(app: Flask, state: ServerState) -> Flask:
    app.extensions[STATE_EXTENSION] = state
    return app


def current_state() -> ServerState:
    """Return the shared server state from inside a request or app context."""
    return current_app.extensions[STATE_EXTENSION]


class DrainingWSGIServer(ThreadedWSGIServer):
    """Threaded werkzeug server that waits for in-flight requests on close."""

    daemon_threads = False
    block_on_close = True

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        # Unlike werkzeug's, lets KeyboardInterrupt through to the caller.
        try:
            socketserver.BaseServer.serve_forever(self, poll_interval=poll_interval)
        finally:
            self.server_close()


def create_server(app: Flask, listener: socket.socket) -> DrainingWSGIServer:
    """Create a werkzeug WSGI server accepting on `listener`.

    Werkzeug duplicates the file descriptor; the caller still owns `listener`
    and should close it once the server exists.
    """
    host, port = listener.getsockname()[:2]
    return DrainingWSGIServer(host, port, app, fd=listener.fileno())
