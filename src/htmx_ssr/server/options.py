"""Server options and their resolution from the environment.

Exposes:
- ServerOptions -> user-facing configuration, optionally read from the environment
- env_var(name, environ) -> the only place the process environment is read
- parse_base_url(raw) -> validates an absolute URL and returns it verbatim
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlsplit

from ..config import Config
from .errors import BaseUrlParseError, EnvVarNotUnicodeError, InvalidUrlError

logger = logging.getLogger(__name__)


def env_var(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Read an environment variable, treating an empty value as unset.

    Raises EnvVarNotUnicodeError when the value holds bytes that did not decode
    as text (Python keeps those as lone surrogates).
    """
    if environ is None:
        environ = os.environ

    value = environ.get(name)
    if not value:
        return None

    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise EnvVarNotUnicodeError(name) from None

    return value


def parse_base_url(raw: str) -> str:
    """Check that `raw` is an absolute URL and return it unchanged."""
    for ch in raw:
        if ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F:
            raise InvalidUrlError("invalid uri character")

    try:
        parts = urlsplit(raw)
        # Raises ValueError for a non-numeric or out of range port.
        parts.port
    except ValueError as e:
        raise InvalidUrlError(str(e)) from e

    if not parts.scheme:
        raise InvalidUrlError("missing scheme")
    if not parts.netloc or not parts.hostname:
        raise InvalidUrlError("missing authority")

    return raw


@dataclass
class ServerOptions:
    """The options for the server.

    `base_url` is the base HTTP URL of the server. Behind a reverse proxy it
    should be set to the base URL of the proxy. When it is not set, the server
    determines it from the address of its own TCP listener.
    """

    base_url: Optional[str] = None

    HTMX_SSR_BASE_URL = Config.BASE_URL_ENV

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerOptions":
        """Get the server options from the environment."""
        logger.info("Reading HTMX SSR server options from the environment...")

        base_url = env_var(cls.HTMX_SSR_BASE_URL, environ)

        if base_url is not None:
            try:
                parse_base_url(base_url)
            except InvalidUrlError as e:
                raise BaseUrlParseError(cls.HTMX_SSR_BASE_URL, base_url, e) from e

            logger.info("%s was set: using `%s` as the base URL.", cls.HTMX_SSR_BASE_URL, base_url)
        else:
            logger.warning(
                "%s was not set: base URL will be determined from the TCP listener address. "
                "This may not be what you want.",
                cls.HTMX_SSR_BASE_URL,
            )

        return cls(base_url=base_url)
