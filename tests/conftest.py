"""Shared test fixtures for oauthkit.

Provides reusable fixtures for building clients against an
``httpx.MockTransport``, isolating the config directories, resetting the
global output manager, and running CLI commands. Discovered automatically
by pytest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import httpx
import pytest

from oauthkit.client import Client
from oauthkit.models import AuthStyle, Config
from oauthkit.output import reset_output

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and library logging after every test.

    The OutputManager caches sys.stdout/sys.stderr when it is created;
    CliRunner swaps those streams per invocation, so a stale manager (or a
    log handler bound to its console) would write to closed files.
    """
    yield
    reset_output()
    logger = logging.getLogger("oauthkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Provider config and client fixtures
# ---------------------------------------------------------------------------


TOKEN_SERVER = "https://provider.test"


def make_config(**overrides: object) -> Config:
    """Build the standard test provider config, overridden by *overrides*."""
    defaults: dict[str, object] = {
        "client_id": "CLIENT_ID",
        "client_secret": "CLIENT_SECRET",
        "auth_url": f"{TOKEN_SERVER}/auth",
        "token_url": f"{TOKEN_SERVER}/token",
        "redirect_url": "REDIRECT_URL",
        "scopes": ["scope1", "scope2"],
        "auth_style": AuthStyle.AUTO_DETECT,
    }
    defaults.update(overrides)
    return Config(**defaults)  # type: ignore[arg-type]


@pytest.fixture
def make_client() -> Callable[..., Client]:
    """Factory returning a :class:`Client` whose HTTP traffic goes to *handler*.

    Usage::

        client = make_client(handler, auth_style=AuthStyle.IN_PARAMS)
    """
    opened: list[httpx.Client] = []

    def _factory(handler: Handler, **overrides: object) -> Client:
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        opened.append(http_client)
        return Client(make_config(**overrides), http_client=http_client)

    yield _factory
    for http_client in opened:
        http_client.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at ``tmp_path``, forces the XDG code path,
    clears ``OAUTHKIT_PROFILE`` and changes into ``tmp_path``.
    """
    monkeypatch.setattr("oauthkit.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("OAUTHKIT_PROFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
