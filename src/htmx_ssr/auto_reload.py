"""Listener provisioning for live-reload workflows.

A socket-activation supervisor (systemfd, systemd) binds the listening socket
once and passes it down to every restarted process through `LISTEN_FDS` and
`LISTEN_PID`. Reusing it keeps the port open across reloads; without one we
simply bind a fresh socket.
"""
import logging
import os
import socket
from typing import MutableMapping, Optional, Tuple, Union

from .config import Config

logger = logging.getLogger(__name__)

Address = Union[str, Tuple[str, int]]


class GetTcpListenerError(Exception):
    """A TCP listener could not be obtained."""


class InheritedListenerError(GetTcpListenerError):
    """The socket passed down by the supervisor could not be used."""

    def __init__(self, err: Exception):
        super().__init__(f"failed to take the inherited TCP listener: {err}")
        self.err = err


class BindError(GetTcpListenerError):
    """A fresh TCP listener could not be bound."""

    def __init__(self, addr: Address, err: Exception):
        super().__init__(f"failed to bind a TCP listener to {addr}: {err}")
        self.addr = addr
        self.err = err


def _split_address(addr: Address) -> Tuple[str, int]:
    if isinstance(addr, tuple):
        return addr[0], int(addr[1])

    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address `{addr}`")

    return host.strip("[]"), int(port)


def bind_tcp_listener(addr: Address, backlog: int = Config.LISTEN_BACKLOG) -> socket.socket:
    """Bind and listen on the first address `addr` resolves to."""
    host, port = _split_address(addr)

    infos = socket.getaddrinfo(host or None, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    family, type_, proto, _, sockaddr = infos[0]

    sock = socket.socket(family, type_, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise

    return sock


def take_inherited_tcp_listener(
    environ: Optional[MutableMapping[str, str]] = None,
) -> Optional[socket.socket]:
    """Take the first socket passed down by a socket-activation supervisor.

    Returns None when the process was not started with one.
    """
    if environ is None:
        environ = os.environ

    listen_pid = environ.pop(Config.LISTEN_PID_ENV, None)
    listen_fds = environ.pop(Config.LISTEN_FDS_ENV, None)

    if listen_pid is not None and listen_pid != str(os.getpid()):
        # Meant for another process.
        return None

    if not listen_fds:
        return None

    try:
        count = int(listen_fds)
    except ValueError as e:
        raise InheritedListenerError(e) from e

    if count < 1:
        return None

    try:
        sock = socket.socket(fileno=Config.LISTEN_FDS_START)
    except OSError as e:
        raise InheritedListenerError(e) from e

    if sock.type != socket.SOCK_STREAM:
        sock.detach()
        raise InheritedListenerError(
            ValueError(f"file descriptor {Config.LISTEN_FDS_START} is not a stream socket")
        )

    sock.setblocking(True)

    return sock


def get_or_bind_tcp_listener(
    addr: Address,
    environ: Optional[MutableMapping[str, str]] = None,
) -> socket.socket:
    """Get an inherited TCP listener, falling back to binding `addr`."""
    listener = take_inherited_tcp_listener(environ)

    if listener is not None:
        logger.info("Using the TCP listener passed down by the supervisor on %s.", listener.getsockname())
        return listener

    logger.info("No TCP listener was passed down: binding to %s.", addr)

    try:
        return bind_tcp_listener(addr)
    except (OSError, ValueError) as e:
        raise BindError(addr, e) from e
