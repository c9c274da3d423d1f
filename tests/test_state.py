import dataclasses

import pytest

from htmx_ssr.server.options import ServerOptions
from htmx_ssr.server.state import ServerState, format_socket_address, resolve


@pytest.mark.parametrize(
    "addr",
    [("127.0.0.1", 8080), ("0.0.0.0", 0), ("::1", 443, 0, 0)],
)
def test_explicit_base_url_is_used_verbatim(addr):
    options = ServerOptions(base_url="https://app.example.com")

    assert resolve(options, addr).base_url == "https://app.example.com"


def test_base_url_inferred_from_ipv4_address():
    state = resolve(ServerOptions(), ("127.0.0.1", 54321))

    assert state.base_url == "http://127.0.0.1:54321"


def test_base_url_inferred_from_ipv6_address():
    state = ServerState.new(ServerOptions(), ("::1", 8080, 0, 0))

    assert state.base_url == "http://[::1]:8080"


def test_format_socket_address():
    assert format_socket_address(("10.0.0.1", 80)) == "10.0.0.1:80"
    assert format_socket_address(("fe80::1", 80, 0, 2)) == "[fe80::1]:80"


def test_state_is_frozen():
    state = resolve(ServerOptions(), ("127.0.0.1", 80))

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.base_url = "http://elsewhere"


def test_state_does_not_follow_later_option_changes():
    options = ServerOptions(base_url="http://one.example.com")
    state = resolve(options, ("127.0.0.1", 80))

    options.base_url = "http://two.example.com"

    assert state.base_url == "http://one.example.com"


@pytest.mark.parametrize(
    "base_url, path, expected",
    [
        ("http://127.0.0.1:8080", "/items", "http://127.0.0.1:8080/items"),
        ("https://app.example.com/", "items/1", "https://app.example.com/items/1"),
        ("https://app.example.com/prefix", "/items", "https://app.example.com/prefix/items"),
    ],
)
def test_absolute_url(base_url, path, expected):
    assert ServerState(base_url=base_url).absolute_url(path) == expected
