"""Server package: options, effective state and the HTTP stack adapter.

This package exposes the option resolution, the shared state and the helpers
to build a Flask router and a Werkzeug server over a bound listener.
"""

from .errors import (
    BaseUrlParseError,
    EnvVarNotUnicodeError,
    InvalidUrlError,
    LocalAddrError,
    NewWithAutoReloadError,
    ServeError,
    ServeIoError,
    ServerConsumedError,
    ServerOptionsFromEnvError,
)
from .model import create_app, create_server, current_state, with_state
from .options import ServerOptions, env_var, parse_base_url
from .state import ServerState, resolve

__all__ = [
    "BaseUrlParseError",
    "EnvVarNotUnicodeError",
    "InvalidUrlError",
    "LocalAddrError",
    "NewWithAutoReloadError",
    "ServeError",
    "ServeIoError",
    "ServerConsumedError",
    "ServerOptionsFromEnvError",
    "ServerOptions",
    "ServerState",
    "create_app",
    "create_server",
    "current_state",
    "env_var",
    "parse_base_url",
    "resolve",
    "with_state",
]
