"""HTMX server-side rendering server lifecycle, on top of Flask and Werkzeug."""

from .auto_reload import (
    BindError,
    GetTcpListenerError,
    InheritedListenerError,
    bind_tcp_listener,
    get_or_bind_tcp_listener,
)
from .controller.server_controller import Server
from .server import (
    BaseUrlParseError,
    EnvVarNotUnicodeError,
    LocalAddrError,
    NewWithAutoReloadError,
    ServeError,
    ServeIoError,
    ServerConsumedError,
    ServerOptions,
    ServerOptionsFromEnvError,
    ServerState,
    current_state,
)
from .services.server_service import ServerService

__all__ = [
    "BaseUrlParseError",
    "BindError",
    "EnvVarNotUnicodeError",
    "GetTcpListenerError",
    "InheritedListenerError",
    "LocalAddrError",
    "NewWithAutoReloadError",
    "ServeError",
    "ServeIoError",
    "Server",
    "ServerConsumedError",
    "ServerOptions",
    "ServerOptionsFromEnvError",
    "ServerService",
    "ServerState",
    "bind_tcp_listener",
    "current_state",
    "get_or_bind_tcp_listener",
]
