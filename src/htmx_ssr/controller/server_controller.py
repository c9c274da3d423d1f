"""Controller owning the lifecycle of an HTMX SSR server.

This module exposes Server: built from a bound listener, configured through
chained calls, then consumed exactly once by serve().
"""
import logging
import signal
import socket
import threading
from typing import Callable, Mapping, MutableMapping, Optional, Tuple

from flask import Flask

from ..auto_reload import Address, GetTcpListenerError, get_or_bind_tcp_listener
from ..config import Config
from ..server import model
from ..server.errors import (
    LocalAddrError,
    NewWithAutoReloadError,
    ServeIoError,
    ServerConsumedError,
)
from ..server.options import ServerOptions
from ..server.state import ServerState, format_socket_address

logger = logging.getLogger(__name__)

# Waits up to `timeout` seconds, returns True once shutdown should begin.
ShutdownPoll = Callable[[float], bool]

# Marker for the `ctrl-c` signal, registered only while serving.
CTRL_C = object()


def _poll_callable(shutdown_signal: Callable[[], object]) -> ShutdownPoll:
    """Run a blocking signal callable on its own thread and poll its completion."""
    fired = threading.Event()

    def wait_for_signal():
        try:
            shutdown_signal()
        except Exception:
            logger.exception("Graceful shutdown signal failed")
        fired.set()

    threading.Thread(target=wait_for_signal, name="htmx-ssr-shutdown-signal", daemon=True).start()

    return fired.wait


def _arm_ctrl_c() -> Tuple[Optional[ShutdownPoll], Optional[Callable[[], None]]]:
    """Register for SIGINT. Returns the poll and a function restoring the previous handler."""
    received = threading.Event()
    previous = signal.getsignal(signal.SIGINT)
    if previous is None:
        previous = signal.default_int_handler

    def on_sigint(signum, frame):
        # Single shot: a second ctrl-c gets the previous handler.
        signal.signal(signal.SIGINT, previous)
        received.set()

    try:
        signal.signal(signal.SIGINT, on_sigint)
    except (ValueError, OSError) as e:
        logger.error("Failed to register for `ctrl-c` signal: %s", e)
        return None, None

    logger.info("Listening for `ctrl-c` signal for graceful shutdown...")

    def wait_for_ctrl_c(timeout: float) -> bool:
        if received.wait(timeout):
            logger.info("Received `ctrl-c` signal, shutting down gracefully.")
            return True
        return False

    def restore():
        if signal.getsignal(signal.SIGINT) is on_sigint:
            signal.signal(signal.SIGINT, previous)

    return wait_for_ctrl_c, restore


def _watch_shutdown(poll: ShutdownPoll, stopped: threading.Event, server: model.DrainingWSGIServer) -> None:
    while not poll(Config.POLL_INTERVAL):
        if stopped.is_set():
            return

    logger.info("Stopped accepting connections, waiting for in-flight requests to finish...")
    server.shutdown()


class Server:
    """The main object of the HTMX SSR framework.

    Owns the TCP listener, the Flask router, the graceful shutdown signal and
    the options until serve() hands them over to the HTTP stack. A server can
    only be served once; any use afterwards raises ServerConsumedError.
    """

    def __init__(self, listener: socket.socket):
        self._listener: Optional[socket.socket] = listener
        self._router: Flask = model.create_app()
        self._graceful_shutdown = None
        self._options = ServerOptions()
        self._served = False
        self._lock = threading.Lock()

    def _ensure_configurable(self) -> None:
        if self._served:
            raise ServerConsumedError()

    @property
    def router(self) -> Flask:
        """Mutable access to the router, for adding routes at a lower level."""
        self._ensure_configurable()
        return self._router

    def with_router(self, router: Flask) -> "Server":
        self._ensure_configurable()
        self._router = router
        return self

    @property
    def options(self) -> ServerOptions:
        self._ensure_configurable()
        return self._options

    def with_options(self, options: ServerOptions) -> "Server":
        self._ensure_configurable()
        self._options = options
        return self

    def with_options_from_env(self, environ: Optional[Mapping[str, str]] = None) -> "Server":
        """Set the options from the environment, see ServerOptions.from_env."""
        self._ensure_configurable()
        self._options = ServerOptions.from_env(environ)
        return self

    @classmethod
    def new_with_auto_reload(
        cls,
        addr: Address,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> "Server":
        """Instantiate a server with all the auto-reload features enabled.

        Takes the TCP listener passed down by a socket-activation supervisor
        if there is one, falling back to binding `addr`, and sets the graceful
        shutdown signal to `ctrl-c`.
        """
        try:
            listener = get_or_bind_tcp_listener(addr, environ)
        except GetTcpListenerError as e:
            raise NewWithAutoReloadError(e) from e

        return cls(listener).with_ctrl_c_graceful_shutdown()

    def with_graceful_shutdown(self, shutdown_signal) -> "Server":
        """Set the graceful shutdown signal.

        `shutdown_signal` is an object with a `wait(timeout)` method like
        threading.Event, or a callable that blocks until shutdown should begin.
        It replaces any previously set signal.
        """
        self._ensure_configurable()
        if not callable(getattr(shutdown_signal, "wait", None)) and not callable(shutdown_signal):
            raise TypeError(
                f"graceful shutdown signal must be callable or have a wait() method, "
                f"got {type(shutdown_signal).__name__}"
            )
        self._graceful_shutdown = shutdown_signal
        return self

    def with_ctrl_c_graceful_shutdown(self) -> "Server":
        """Set the graceful shutdown signal to `ctrl-c`.

        SIGINT is only registered while serve() runs, and only when serve() is
        called from the main thread. Failing to register is logged and the
        server then runs without this trigger.
        """
        self._ensure_configurable()
        self._graceful_shutdown = CTRL_C
        return self

    def _shutdown_poll(self) -> Tuple[Optional[ShutdownPoll], Optional[Callable[[], None]]]:
        shutdown_signal = self._graceful_shutdown
        if shutdown_signal is None:
            return None, None
        if shutdown_signal is CTRL_C:
            return _arm_ctrl_c()
        if callable(getattr(shutdown_signal, "wait", None)):
            return shutdown_signal.wait, None
        return _poll_callable(shutdown_signal), None

    def serve(self) -> None:
        """Serve the application.

        Blocks until the graceful shutdown signal fires and in-flight requests
        are done, or until the accept loop fails. Without a shutdown signal
        this normally never returns; a KeyboardInterrupt propagates.
        """
        with self._lock:
            self._ensure_configurable()
            self._served = True
            listener, self._listener = self._listener, None

        try:
            local_addr = listener.getsockname()
        except OSError as e:
            listener.close()
            raise LocalAddrError(e) from e

        logger.info("HTMX SSR server listening on TCP/%s.", format_socket_address(local_addr))

        state = ServerState.new(self._options, local_addr)

        logger.info("Now serving HTMX SSR server at `%s`...", state.base_url)

        app = model.with_state(self._router, state)
        try:
            server = model.create_server(app, listener)
        except OSError as e:
            raise ServeIoError(e) from e
        finally:
            # The server works on its own duplicate of the descriptor.
            listener.close()

        stopped = threading.Event()
        poll, restore_sigint = self._shutdown_poll()
        try:
            if poll is not None:
                watcher = threading.Thread(
                    target=_watch_shutdown,
                    args=(poll, stopped, server),
                    name="htmx-ssr-graceful-shutdown",
                    daemon=True,
                )
                watcher.start()

            server.serve_forever(poll_interval=Config.POLL_INTERVAL)
        except OSError as e:
            raise ServeIoError(e) from e
        finally:
            stopped.set()
            if restore_sigint is not None:
                restore_sigint()

        logger.info("HTMX SSR server stopped.")
