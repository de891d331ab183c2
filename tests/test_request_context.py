"""Tests for caller identification behind proxies."""

from starlette.requests import Request

from app.middleware.request_context import client_identifier

PEER = ("10.0.0.5", 4711)


def make_request(forwarded: str | None = None) -> Request:
    headers = []
    if forwarded is not None:
        headers.append((b"x-forwarded-for", forwarded.encode()))
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": PEER})


def test_uses_hop_appended_by_trusted_proxy():
    request = make_request("198.51.100.9")

    assert client_identifier(request, trusted_hops=1) == "198.51.100.9"


def test_ignores_caller_supplied_prefix():
    spoofed = [make_request(f"192.0.2.{n}, 198.51.100.9") for n in range(3)]

    assert {client_identifier(r, trusted_hops=1) for r in spoofed} == {"198.51.100.9"}


def test_counts_trusted_hops_from_the_right():
    request = make_request("192.0.2.1, 198.51.100.9, 10.0.0.2")

    assert client_identifier(request, trusted_hops=2) == "198.51.100.9"


def test_short_chain_falls_back_to_leftmost_hop():
    request = make_request("198.51.100.9")

    assert client_identifier(request, trusted_hops=3) == "198.51.100.9"


def test_no_trusted_proxies_uses_peer():
    request = make_request("192.0.2.1")

    assert client_identifier(request, trusted_hops=0) == "10.0.0.5"


def test_missing_header_uses_peer():
    assert client_identifier(make_request(), trusted_hops=1) == "10.0.0.5"


def test_default_trusts_one_proxy():
    request = make_request("192.0.2.1, 198.51.100.9")

    assert client_identifier(request) == "198.51.100.9"
