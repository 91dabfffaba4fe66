"""oauthkit -- a small OAuth2 client library and command line tool.

The library builds authorization URLs and exchanges authorization codes,
resource-owner passwords, and refresh tokens for access tokens at a
provider's token endpoint. Client credentials are sent either in the
POST body or with HTTP Basic auth; by default both are tried and the
working style is remembered on the :class:`Config`.

Typical usage::

    from oauthkit import Client, Config

    config = Config(
        client_id="CLIENT_ID",
        client_secret="CLIENT_SECRET",
        auth_url="https://provider.example.com/oauth/authorize",
        token_url="https://provider.example.com/oauth/token",
        redirect_url="https://app.example.com/callback",
        scopes=["read"],
    )
    with Client(config) as client:
        print(client.auth_code_url("state"))
        token = client.exchange(code)

Modules:
    client: :class:`Client` and the token endpoint round trip.
    token: :class:`Token` and its extra-field variants.
    response: Token endpoint response parsing.
    values: Multi-valued URL parameter helpers.
    auth: httpx auth hooks that inject a token into requests.
    models: Pydantic models for providers and CLI configuration.
    config: Profiles, XDG paths, and credential sources for the CLI.
    app: Typer application and CLI entry point.
"""

__version__ = "0.3.0"

from oauthkit.auth import HeaderAuth, TokenAuth, wrap_client
from oauthkit.client import Client
from oauthkit.exceptions import (
    MissingAccessTokenError,
    OAuthKitError,
    RefreshTokenMissingError,
    ResponseParseError,
    TokenError,
    TokenRetrieveError,
)
from oauthkit.models import AuthStyle, Config
from oauthkit.token import FormFields, JSONFields, Token

__all__ = [
    "AuthStyle",
    "Client",
    "Config",
    "FormFields",
    "HeaderAuth",
    "JSONFields",
    "MissingAccessTokenError",
    "OAuthKitError",
    "RefreshTokenMissingError",
    "ResponseParseError",
    "Token",
    "TokenAuth",
    "TokenError",
    "TokenRetrieveError",
    "wrap_client",
]
