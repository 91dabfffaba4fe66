"""Terminal output for the ``oauthkit`` CLI.

Data and diagnostics never share a stream:

* **stdout** carries results only (consent URLs, token records, profile
  listings) so they can be piped into other tools.
* **stderr** carries everything else: status lines, warnings, errors,
  next-step hints, and library log records.

The record format is chosen per invocation: ``json`` for scripts,
``plain`` (tab separated) when stdout is not a terminal, ``rich`` tables
when it is. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all disable
styling.

:func:`~oauthkit.app.main_callback` builds one :class:`OutputManager` per
run and installs it with :func:`set_output`; commands use the module level
helpers.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table


class OutputFormat(str, Enum):
    """How records are written to stdout.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable stdout and
    ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (rich style, plain prefix, shown when quiet)
_DIAGNOSTICS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", False),
    "success": ("green", "", False),
    "suggest": ("dim", "→ ", False),
    "warning": ("yellow", "Warning: ", True),
    "error": ("bold red", "Error: ", True),
    "debug": ("dim", "[debug] ", True),
}


class OutputManager:
    """Writes records to stdout and diagnostics to stderr.

    Args:
        format: Record format; ``AUTO`` is resolved from the terminal.
        no_color: Disable colour and Rich markup.
        quiet: Drop info, success and suggestion lines.
        verbose: Show debug lines and DEBUG library logs.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # -- stdout --------------------------------------------------------

    def show_text(self, text: str) -> None:
        """Write one line of result text (e.g. a consent URL)."""
        print(text, file=sys.stdout, flush=True)

    def show_record(self, record: Mapping[str, Any], title: Optional[str] = None) -> None:
        """Write a flat mapping such as a token summary or a stored profile.

        ``None`` values render as empty cells in plain and rich output and
        as ``null`` in JSON.
        """
        if self._format == OutputFormat.JSON:
            self.show_text(json.dumps(dict(record), indent=2, ensure_ascii=False, default=str))
            return

        cells = [(key, _cell(value)) for key, value in record.items()]
        if self._format == OutputFormat.PLAIN:
            for key, value in cells:
                self.show_text(f"{key}\t{value}")
            return

        table = Table(title=title, show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column(overflow="fold")
        for key, value in cells:
            table.add_row(key, value)
        self._stdout.print(table)

    def show_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows: a JSON array of objects, TSV lines, or a Rich table."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.show_text(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.show_text("\t".join(line))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # -- stderr --------------------------------------------------------

    def notify(self, level: str, message: str) -> None:
        """Write a diagnostic line at *level* (a key of ``_DIAGNOSTICS``).

        Quiet mode keeps warnings and errors; debug lines need verbose.
        """
        style, prefix, shown_when_quiet = _DIAGNOSTICS[level]
        if self._quiet and not shown_when_quiet:
            return
        if level == "debug" and not self._verbose:
            return

        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        elif level in ("warning", "error"):
            self._stderr.print(f"[{style}]{prefix.rstrip()}[/{style}] {message}")
        elif style:
            self._stderr.print(f"[{style}]{prefix}{message}[/{style}]")
        else:
            self._stderr.print(message)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Route ``oauthkit`` log records to *output*'s stderr console.

    Verbose runs see DEBUG records (each token request and auth-style
    fallback); otherwise only warnings and above get through.
    """
    logger = logging.getLogger("oauthkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=output.stderr_console, show_path=False, markup=False))
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap streams between runs)."""
    global _output
    _output = None


def show_text(text: str) -> None:
    get_output().show_text(text)


def show_record(record: Mapping[str, Any], title: Optional[str] = None) -> None:
    get_output().show_record(record, title)


def show_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    title: Optional[str] = None,
) -> None:
    get_output().show_table(headers, rows, title)


def info(message: str) -> None:
    get_output().notify("info", message)


def success(message: str) -> None:
    get_output().notify("success", message)


def suggest(message: str) -> None:
    get_output().notify("suggest", message)


def warning(message: str) -> None:
    get_output().notify("warning", message)


def error(message: str) -> None:
    get_output().notify("error", message)

