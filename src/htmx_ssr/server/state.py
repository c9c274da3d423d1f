"""Effective server state, resolved once per server run.

The state is frozen after construction and shared by every request thread
without locking.
"""
import logging
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urljoin

from .options import ServerOptions

logger = logging.getLogger(__name__)


def format_socket_address(addr: Tuple) -> str:
    """Render a `getsockname()` result as `host:port`, bracketing IPv6 hosts."""
    host, port = addr[0], addr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass(frozen=True)
class ServerState:
    """The state shared by all request handlers of a running server."""

    base_url: str

    @classmethod
    def new(cls, options: ServerOptions, local_addr: Tuple) -> "ServerState":
        if options.base_url is not None:
            logger.debug("Using the configured base URL `%s`.", options.base_url)
            return cls(base_url=options.base_url)

        base_url = f"http://{format_socket_address(local_addr)}"
        logger.debug("Inferred base URL `%s` from the listener address.", base_url)

        return cls(base_url=base_url)

    def absolute_url(self, path: str) -> str:
        """Build an absolute URL for a site-relative `path`."""
        base = self.base_url if self.base_url.endswith("/") else self.base_url + "/"
        return urljoin(base, path.lstrip("/"))


def resolve(options: ServerOptions, local_addr: Tuple) -> ServerState:
    """Resolve the effective server state for a listener bound to `local_addr`."""
    return ServerState.new(options, local_addr)
