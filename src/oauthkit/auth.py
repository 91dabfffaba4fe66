"""Header injection for requests made with an issued token.

:class:`HeaderAuth` is an :class:`httpx.Auth` that sets one fixed header
on every outgoing request; :class:`TokenAuth` derives that header from a
:class:`~oauthkit.token.Token`. :func:`wrap_client` builds a new
:class:`httpx.Client` with the header applied.

Example::

    token = client.exchange(code)
    with wrap_client("Authorization", f"{token.type()} {token.access_token}") as api:
        api.get("https://api.example.com/me")
"""

from __future__ import annotations

from typing import Any, Generator, Optional

import httpx

from oauthkit.token import Token


class HeaderAuth(httpx.Auth):
    """Set *header* to *value* on every request.

    Raises:
        ValueError: If *header* or *value* is empty.
    """

    def __init__(self, header: str, value: str) -> None:
        if not header:
            raise ValueError("header name must not be empty")
        if not value:
            raise ValueError("header value must not be empty")
        self.header = header
        self.value = value

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers[self.header] = self.value
        yield request


class TokenAuth(HeaderAuth):
    """Send ``Authorization: <type> <access_token>`` for *token*."""

    def __init__(self, token: Token) -> None:
        super().__init__("Authorization", f"{token.type()} {token.access_token}")
        self.token = token


def wrap_client(
    header: str,
    value: str,
    transport: Optional[httpx.BaseTransport] = None,
    **client_kwargs: Any,
) -> httpx.Client:
    """Return a new :class:`httpx.Client` that adds *header* to every request.

    Args:
        header: Header name, e.g. ``"Authorization"``.
        value: Header value.
        transport: Transport to send requests through. ``None`` uses the
            default httpx transport.
        **client_kwargs: Forwarded to :class:`httpx.Client` (``timeout``,
            ``base_url``, ...).

    Raises:
        ValueError: If *header* or *value* is empty.
    """
    return httpx.Client(auth=HeaderAuth(header, value), transport=transport, **client_kwargs)
