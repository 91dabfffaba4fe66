"""Pydantic models shared across oauthkit.

**Provider models** -- consumed by :class:`~oauthkit.client.Client`:
    :class:`AuthStyle` and :class:`Config`.

**CLI configuration models** -- serialised as JSON in the user's config
directory by :mod:`oauthkit.config`:
    :class:`RequestConfig`, :class:`Profile`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

Profiles never hold secrets directly; ``client_secret_source`` is a
credential source descriptor resolved at run time by
:func:`~oauthkit.config.resolve_credential`.
"""

from __future__ import annotations

import enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthStyle(int, enum.Enum):
    """How client credentials are sent to the token endpoint."""

    AUTO_DETECT = 0
    """Try :attr:`IN_HEADER` first, fall back to :attr:`IN_PARAMS` and remember it."""

    IN_PARAMS = 1
    """Send ``client_id`` and ``client_secret`` in the form-encoded POST body."""

    IN_HEADER = 2
    """Send the client credentials with HTTP Basic auth (:rfc:`6749` section 2.3.1)."""


class Config(BaseModel):
    """Static description of an OAuth2 provider and the registered client.

    Only :attr:`auth_style` is expected to change after construction: the
    :class:`~oauthkit.client.Client` records the style that worked after a
    successful auto-detect probe.

    Example::

        Config(
            client_id="CLIENT_ID",
            client_secret="CLIENT_SECRET",
            auth_url="https://provider.example.com/oauth/authorize",
            token_url="https://provider.example.com/oauth/token",
            redirect_url="https://app.example.com/callback",
            scopes=["read", "write"],
        )
    """

    model_config = ConfigDict(validate_assignment=True)

    client_id: str = ""
    client_secret: str = ""
    auth_url: str = ""
    token_url: str = ""
    redirect_url: str = ""
    scopes: list[str] = Field(default_factory=list)
    auth_style: AuthStyle = AuthStyle.AUTO_DETECT


class RequestConfig(BaseModel):
    """HTTP settings applied to token requests made by the CLI."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class Profile(BaseModel):
    """Per-provider profile stored as JSON under the ``profiles/`` config directory.

    Created with ``oauthkit profile add`` and selected with ``--profile``.

    See Also:
        :func:`~oauthkit.config.build_client_config`: Turn a profile into a
        :class:`Config` with its secret resolved.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    client_id: str = ""
    client_secret_source: Optional[str] = Field(
        default=None,
        description="Credential source: env:VAR, file:/path, prompt, literal:VALUE",
    )
    auth_url: str = ""
    token_url: str
    redirect_url: str = ""
    scopes: list[str] = Field(default_factory=list)
    auth_style: AuthStyle = AuthStyle.AUTO_DETECT
    request: RequestConfig = Field(default_factory=RequestConfig)


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/oauthkit/config.json``.

    Fields here have the lowest precedence; see
    :func:`~oauthkit.config.resolve_config` for the full chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)
