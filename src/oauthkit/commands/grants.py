"""Grant commands -- run each OAuth2 flow against the active profile.

Provides the top-level ``url``, ``exchange``, ``password`` and
``refresh`` commands. Each one resolves the active profile (``--profile``,
``OAUTHKIT_PROFILE``, project or global default), builds a
:class:`~oauthkit.client.Client`, and prints the result to stdout.

Typical workflow::

    oauthkit url --state xyz            # open the printed URL, consent
    oauthkit exchange <code>            # trade the code for a token
    oauthkit refresh <refresh_token>    # renew later
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from oauthkit.client import Client
from oauthkit.exceptions import ConfigError, InvalidUsageError
from oauthkit.models import Profile
from oauthkit.output import show_record, show_text, warning
from oauthkit.token import Token
from oauthkit.values import Values, add_value


def _active_profile(ctx: typer.Context) -> Profile:
    from oauthkit.config import resolve_config

    cli_profile = ctx.obj.get("profile") if ctx.obj else None
    _, profile = resolve_config(cli_profile)
    if profile is None:
        raise ConfigError(
            "No profile selected. Create one with 'oauthkit profile add' "
            "or pass --profile."
        )
    return profile


def _open_client(ctx: typer.Context) -> Client:
    from oauthkit.config import build_client_config

    profile = _active_profile(ctx)
    return Client(build_client_config(profile), timeout=profile.request.timeout)


def parse_params(items: Optional[list[str]]) -> Values:
    """Turn repeated ``key=value`` options into :data:`~oauthkit.values.Values`.

    Raises:
        InvalidUsageError: If an item has no ``=``.
    """
    vals: Values = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected key=value, got: {item!r}")
        add_value(vals, key, value)
    return vals


def token_to_dict(token: Token) -> dict[str, Any]:
    """Summarise *token* for display."""
    return {
        "access_token": token.access_token,
        "token_type": token.type(),
        "refresh_token": token.refresh_token or None,
        "expiry": token.expiry.isoformat() if token.expiry else None,
        "valid": token.valid(),
    }


def _show_token(token: Token) -> None:
    if not token.valid():
        warning("The issued token is already expired.")
    show_record(token_to_dict(token), title="Token")


def url_command(
    ctx: typer.Context,
    state: str = typer.Option("", "--state", "-s", help="Opaque CSRF state value."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", help="Extra query parameter as key=value (repeatable)."
    ),
) -> None:
    """Print the provider consent-page URL.

    Example::

        oauthkit url --state xyz --param prompt=consent
    """
    with _open_client(ctx) as client:
        show_text(client.auth_code_url(state, parse_params(param)))


def exchange_command(
    ctx: typer.Context,
    code: str = typer.Argument(help="Authorization code from the redirect."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", help="Extra form parameter as key=value (repeatable)."
    ),
) -> None:
    """Exchange an authorization code for a token."""
    with _open_client(ctx) as client:
        token = client.exchange(code, parse_params(param))
    _show_token(token)


def password_command(
    ctx: typer.Context,
    username: str = typer.Argument(help="Resource owner username."),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        help="Credential source for the password: env:VAR, file:/path, prompt, literal:VALUE.",
    ),
) -> None:
    """Request a token with the resource owner password grant."""
    from oauthkit.config import resolve_credential

    password = resolve_credential(password_source)
    with _open_client(ctx) as client:
        token = client.credentials_token(username, password)
    _show_token(token)


def refresh_command(
    ctx: typer.Context,
    refresh_token: str = typer.Argument(help="Refresh token from an earlier grant."),
) -> None:
    """Renew a token with a refresh token."""
    with _open_client(ctx) as client:
        token = client.token(refresh_token)
    _show_token(token)
