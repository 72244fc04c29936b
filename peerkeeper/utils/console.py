"""
Rich-based terminal output and operator prompts for peerkeeper.

Everything the operator reads or answers goes through here: status lines,
result tables and numbered version menus. Diagnostics belong to
:mod:`peerkeeper.utils.logger` instead.

The console is created lazily and shared. Color is off when ``NO_COLOR``
or ``CI`` is set or stdout is not a terminal; call
:func:`reconfigure_console` after changing any of those.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional, Sequence

import click
from rich.table import Table
from rich.theme import Theme
from rich.console import Console

from peerkeeper.exceptions import OperatorUnavailable

PEERKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "choice": "magenta",
    }
)

#: Update type → Rich color used in outdated reports.
UPDATE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "update": "yellow",
    "new": "cyan",
    "downgrade": "red",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    global _console

    with _console_lock:
        if _console is None:
            color = _should_use_color()
            # No ``file``: Rich resolves sys.stdout on every write.
            _console = Console(theme=PEERKEEPER_THEME, no_color=not color, highlight=color)
        return _console


def reconfigure_console() -> None:
    """Drop the shared console so the next write re-detects color support."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    return _get_console()


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str) -> None:
    """Progress line, printed without a prefix."""
    _get_console().print(message, style="info")


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
) -> None:
    """Render ``rows`` as a table; nothing is printed for an empty list.

    Args:
        rows: One mapping per row. Values may carry Rich markup.
        headers: Columns to show, in order. Defaults to the keys of the
            first row.
        title: Table title.
        column_styles: Keyword arguments for ``Table.add_column`` per
            column (``style``, ``justify``, ``no_wrap``, ...).
    """
    if not rows:
        return

    columns = headers or list(rows[0])
    styles = column_styles or {}

    table = Table(title=title, header_style="bold")
    for column in columns:
        options = {"overflow": "fold", **styles.get(column, {})}
        table.add_column(column, **options)

    for row in rows:
        table.add_row(*(str(row.get(column, "")) for column in columns))

    _get_console().print(table)


def choose(message: str, choices: Sequence[str]) -> str:
    """Ask the operator to pick one entry from ``choices``.

    The choices are listed with 1-based numbers and the operator answers
    with a number. There is no default: the prompt repeats until a valid
    number is entered.

    Raises:
        OperatorUnavailable: Input was closed or the prompt was aborted.
        ValueError: ``choices`` is empty.
    """
    if not choices:
        raise ValueError("choose() requires at least one choice")

    console = _get_console()
    console.print(message, style="info")
    width = len(str(len(choices)))
    for number, value in enumerate(choices, start=1):
        console.print(f"  [choice]{number:>{width}})[/choice] {value}", highlight=False)

    try:
        number = click.prompt("Selection", type=click.IntRange(1, len(choices)))
    except click.Abort as exc:
        console.print()
        raise OperatorUnavailable(f"No selection received for: {message}") from exc

    return choices[number - 1]


def colorize_update_type(update_type: str) -> str:
    """Wrap an update type (``major``, ``minor``...) in Rich color markup."""
    color = UPDATE_TYPE_COLORS.get(update_type.lower())
    if color is None:
        return update_type
    return f"[{color}]{update_type}[/{color}]"
