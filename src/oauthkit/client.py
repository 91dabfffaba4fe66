"""OAuth2 client for the authorization-code, password and refresh grants.

This module provides :class:`Client`, which builds consent-page URLs and
performs the token endpoint round trip for each grant type:

- :meth:`Client.exchange` -- authorization code (:rfc:`6749` section 4.1.3)
- :meth:`Client.credentials_token` -- resource owner password credentials
  (section 4.3)
- :meth:`Client.token` -- refresh (section 6)

All three funnel into a single request routine that honours the
configured :class:`~oauthkit.models.AuthStyle`. With
``AuthStyle.AUTO_DETECT`` the client credentials are first sent with HTTP
Basic auth; if that attempt fails for any reason the request is repeated
once with the credentials in the POST body, and on success that style is
stored on the client's :class:`~oauthkit.models.Config` for later calls.

The style update is a plain attribute write. A client must not be used
from several threads while it may still be probing.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import replace
from typing import Mapping, Optional, Sequence

import httpx

from oauthkit.exceptions import RefreshTokenMissingError
from oauthkit.models import AuthStyle, Config
from oauthkit.response import parse_response
from oauthkit.token import Token
from oauthkit.values import (
    Values,
    add_value,
    clone_values,
    encode_values,
    get_value,
    query_escape,
    set_value,
)

logger = logging.getLogger(__name__)

ParamsArg = Optional[Mapping[str, Sequence[str]]]


class Client:
    """OAuth2 client bound to a single provider :class:`~oauthkit.models.Config`.

    Args:
        config: Provider endpoints and client credentials. The client keeps
            a reference and may update ``config.auth_style`` after a
            successful auto-detect probe.
        http_client: Transport used for token requests. When ``None`` a
            private :class:`httpx.Client` is created and closed by
            :meth:`close`.
        timeout: Request timeout in seconds for the private client.

    Example::

        with Client(config) as client:
            url = client.auth_code_url("state-123")
            # ... user consents, provider redirects back with ?code=...
            token = client.exchange(code)
    """

    def __init__(
        self,
        config: Config,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._http_client.close()

    # ------------------------------------------------------------------ #
    # Grants
    # ------------------------------------------------------------------ #

    def auth_code_url(self, state: str = "", params: ParamsArg = None) -> str:
        """Return the URL of the provider's consent page.

        *state* protects the user from CSRF attacks; callers should always
        pass a non-empty value and check it on the redirect callback
        (:rfc:`6749` section 10.12).

        Args:
            state: Opaque value echoed back on the redirect.
            params: Extra query parameters (e.g. ``{"prompt": ["consent"]}``).
                Standard parameters take precedence on key collisions.

        Returns:
            ``auth_url`` with the encoded parameters appended.
        """
        config = self.config
        vals = clone_values(params)
        add_value(vals, "response_type", "code")
        add_value(vals, "client_id", config.client_id)

        if config.redirect_url:
            set_value(vals, "redirect_uri", config.redirect_url)
        if config.scopes:
            set_value(vals, "scope", " ".join(config.scopes))
        if state:
            set_value(vals, "state", state)

        separator = "&" if "?" in config.auth_url else "?"
        return f"{config.auth_url}{separator}{encode_values(vals)}"

    def exchange(self, code: str, params: ParamsArg = None) -> Token:
        """Convert an authorization code into a token.

        Args:
            code: The ``code`` query parameter from the redirect callback.
            params: Extra form parameters for the token request.

        Returns:
            The issued :class:`~oauthkit.token.Token`.
        """
        vals = clone_values(params)
        add_value(vals, "grant_type", "authorization_code")
        add_value(vals, "code", code)

        if self.config.redirect_url:
            set_value(vals, "redirect_uri", self.config.redirect_url)
        return self._retrieve_token(vals)

    def credentials_token(self, username: str, password: str) -> Token:
        """Retrieve a token for a resource owner's username and password."""
        vals: Values = {
            "grant_type": ["password"],
            "username": [username],
            "password": [password],
        }
        if self.config.scopes:
            set_value(vals, "scope", " ".join(self.config.scopes))
        return self._retrieve_token(vals)

    def token(self, refresh_token: str) -> Token:
        """Renew a token using *refresh_token*.

        If the provider omits ``refresh_token`` from its answer, the returned
        token carries the one that was sent.

        Raises:
            RefreshTokenMissingError: If *refresh_token* is empty. No
                request is sent.
        """
        if not refresh_token:
            raise RefreshTokenMissingError()

        vals: Values = {
            "grant_type": ["refresh_token"],
            "refresh_token": [refresh_token],
        }
        return self._retrieve_token(vals)

    # ------------------------------------------------------------------ #
    # Token endpoint round trip
    # ------------------------------------------------------------------ #

    def _retrieve_token(self, vals: Values) -> Token:
        style = self.config.auth_style
        probing = style == AuthStyle.AUTO_DETECT
        if probing:
            style = AuthStyle.IN_HEADER

        try:
            token = self._make_request(style, vals)
        except Exception as exc:
            if not probing:
                raise
            # Providers disagree on where client credentials go, so try
            # the other way once.
            logger.debug(
                "Token request with %s failed (%s); retrying with %s",
                style.name,
                exc,
                AuthStyle.IN_PARAMS.name,
            )
            style = AuthStyle.IN_PARAMS
            token = self._make_request(style, vals)
            self.config.auth_style = style

        if not token.refresh_token:
            sent = get_value(vals, "refresh_token")
            if sent:
                token = replace(token, refresh_token=sent)
        return token

    def _make_request(self, style: AuthStyle, vals: Values) -> Token:
        request = self._new_token_request(style, vals)
        logger.debug(
            "POST %s grant_type=%s auth_style=%s",
            request.url,
            get_value(vals, "grant_type"),
            style.name,
        )
        response = self._http_client.send(request, stream=True)
        return parse_response(response)

    def _new_token_request(self, style: AuthStyle, vals: Values) -> httpx.Request:
        client_id = self.config.client_id
        client_secret = self.config.client_secret

        if style == AuthStyle.IN_PARAMS:
            vals = clone_values(vals)
            if client_id:
                set_value(vals, "client_id", client_id)
            if client_secret:
                set_value(vals, "client_secret", client_secret)

        request = self._http_client.build_request(
            "POST",
            self.config.token_url,
            content=encode_values(vals).encode("ascii"),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        if style == AuthStyle.IN_HEADER:
            credentials = f"{query_escape(client_id)}:{query_escape(client_secret)}"
            encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
            request.headers["Authorization"] = f"Basic {encoded}"
        return request
