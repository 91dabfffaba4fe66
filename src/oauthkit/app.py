"""Typer application factory and CLI entry point for oauthkit.

Wires the root Typer application, registers the grant commands
(``url``, ``exchange``, ``password``, ``refresh``) and the ``profile``
sub-group.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It maps :class:`~oauthkit.exceptions.OAuthKitError`
to its exit code and transport failures to
:data:`~oauthkit.exit_codes.EXIT_CONNECTION_ERROR`; anything else is
written to a crash log under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import httpx
import typer

from oauthkit import __version__
from oauthkit.commands.grants import (
    exchange_command,
    password_command,
    refresh_command,
    url_command,
)
from oauthkit.commands.profile import profile_app
from oauthkit.exit_codes import EXIT_CONNECTION_ERROR, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="oauthkit",
    help="Fetch OAuth2 tokens from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("url")(url_command)
app.command("exchange")(exchange_command)
app.command("password")(password_command)
app.command("refresh")(refresh_command)
app.add_typer(profile_app, name="profile", help="Provider profile management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"oauthkit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~oauthkit.output.OutputManager`, routes
    library logging to stderr, and stores shared options in ``ctx.obj``.
    """
    from oauthkit.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        from oauthkit.config import load_global_config

        fmt = OutputFormat(load_global_config().output.format)

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from oauthkit.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oauthkit`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oauthkit.exceptions import OAuthKitError
        from oauthkit.output import error

        if isinstance(exc, OAuthKitError):
            error(str(exc))
            sys.exit(exc.exit_code)
        if isinstance(exc, httpx.HTTPError):
            error(f"Request to token endpoint failed: {exc}")
            sys.exit(EXIT_CONNECTION_ERROR)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
