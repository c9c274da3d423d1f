"""Error types raised while configuring and serving an HTMX SSR server.

Every error wraps its underlying cause through exception chaining, so callers
can decide on the process-level response (log and exit, restart, alert).
"""


class ServerOptionsFromEnvError(Exception):
    """The server options could not be read from the environment."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class EnvVarNotUnicodeError(ServerOptionsFromEnvError):
    """An environment variable was not valid unicode."""

    def __init__(self, name: str):
        super().__init__(name, f"environment variable {name} was not unicode")


class BaseUrlParseError(ServerOptionsFromEnvError):
    """The base URL read from the environment is not an absolute URL."""

    def __init__(self, name: str, url: str, err: Exception):
        super().__init__(
            name,
            f"failed to parse the base URL from environment variable {name} (was `{url}`): {err}",
        )
        self.url = url
        self.err = err


class InvalidUrlError(ValueError):
    """A string is not a valid absolute URL."""


class NewWithAutoReloadError(Exception):
    """A server with auto-reload features could not be instantiated."""

    def __init__(self, err: Exception):
        super().__init__(f"failed to get a TCP listener: {err}")
        self.err = err


class ServeError(Exception):
    """Serving the application failed."""


class LocalAddrError(ServeError):
    """The local address of the listener could not be read."""

    def __init__(self, err: OSError):
        super().__init__(f"failed to get the local address of the listener: {err}")
        self.err = err


class ServeIoError(ServeError):
    """The accept loop failed with an I/O error."""

    def __init__(self, err: OSError):
        super().__init__(f"failed to serve the application: {err}")
        self.err = err


class ServerConsumedError(RuntimeError):
    """A server was used again after `serve` was called on it."""

    def __init__(self):
        super().__init__("the server was already served and cannot be reused")
