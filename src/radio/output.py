"""Terminal output for radio, split between stdout and stderr.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** carries data only: the access token printed by
  ``radio login`` and the results printed by ``radio search``, so
  ``TOKEN=$(radio login tidal)`` captures exactly the token.
* **stderr** carries every diagnostic, including the "Browse to:" line of
  the login flow.
* Rich rendering is used when stdout is a terminal, plain text when it is
  piped. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` turn colour off.

Diagnostics are assembled as :class:`rich.text.Text`, never as markup
strings. Their text often comes from outside (a browser request line, a
provider's ``error_description``, a response body), and a stray ``[/x]``
in it must print as-is.

:class:`OutputManager` holds the preferences. :func:`~radio.app.main_callback`
installs one with :func:`set_output`, and the module-level helpers
delegate to it.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How data written to stdout is rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, coloured terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes data to stdout and diagnostics to stderr.

    Args:
        format: Requested data format. ``AUTO`` is resolved here.
        no_color: Disable colour and styling.
        quiet: Drop informational diagnostics. Errors, warnings and
            prompts the user has to act on are always shown.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet

        if format == OutputFormat.AUTO:
            coloured_tty = _is_tty() and not self._no_color
            format = OutputFormat.RICH if coloured_tty else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved data format."""
        return self._format

    @property
    def stderr_console(self) -> Console:
        """The diagnostics console, shared with the log handler."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # Data (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* to stdout unchanged."""
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Render a decoded response body (or raw text) in the active format."""
        data = _maybe_json(data)
        if isinstance(data, str):
            if self._format == OutputFormat.RICH:
                self._stdout.print(data, markup=False)
            else:
                self.print_data(data)
            return

        if self._format == OutputFormat.JSON:
            self.print_data(_dump(data, indent=2))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        else:
            self._stdout.print(Syntax(_dump(data, indent=2), "json", word_wrap=True))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            self.print_data(_dump([dict(zip(headers, row)) for row in rows], indent=2))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational note. Hidden by ``--quiet``."""
        self._diagnostic(message)

    def prompt(self, message: str) -> None:
        """Something the user has to act on, such as the login URL. Never hidden."""
        self._diagnostic(message, style="bold", essential=True)

    def success(self, message: str) -> None:
        """Completion note in green. Hidden by ``--quiet``."""
        self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        """Yellow warning. Never hidden."""
        self._diagnostic(message, label="Warning:", style="yellow", essential=True)

    def error(self, message: str) -> None:
        """Bold red error. Never hidden."""
        self._diagnostic(message, label="Error:", style="bold red", essential=True)

    def suggest(self, message: str) -> None:
        """Dimmed next-step hint. Hidden by ``--quiet``."""
        self._diagnostic(f"→ {message}", style="dim")

    def _diagnostic(
        self,
        message: str,
        *,
        label: Optional[str] = None,
        style: Optional[str] = None,
        essential: bool = False,
    ) -> None:
        if self._quiet and not essential:
            return
        if self._no_color:
            line = f"{label} {message}" if label else message
            print(line, file=sys.stderr, flush=True)
            return

        text = Text()
        if label:
            text.append(label, style=style)
            text.append(" ")
            text.append(message)
        else:
            text.append(message, style=style)
        # soft_wrap keeps long URLs on one line so they stay clickable
        self._stderr.print(text, soft_wrap=True)


def _maybe_json(data: Any) -> Any:
    """Decode *data* if it is a string holding JSON, else return it unchanged."""
    if not isinstance(data, str):
        return data
    try:
        return json.loads(data)
    except ValueError:
        return data


def _dump(data: Any, indent: Optional[int] = None) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    """Flatten a decoded body into tab-separated lines.

    Dicts become ``key<TAB>value`` with nested values as compact JSON; lists
    become one line per item.
    """
    if isinstance(data, dict):
        return [
            f"{key}\t{_dump(value) if isinstance(value, (dict, list)) else value}"
            for key, value in data.items()
        ]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance, installed by the CLI callback
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the global :class:`OutputManager` (used by tests)."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def prompt(message: str) -> None:
    get_output().prompt(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
