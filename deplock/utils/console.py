"""
Rich console output for deplock commands.

Status lines (``[OK]``, ``[ERROR]``, ``[WARNING]``), package tables and JSON
documents all go through one lazily created console. Diagnostics belong in
:mod:`deplock.utils.logger`, not here.
"""

from __future__ import annotations

import sys
import json
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

from deplock.utils.logger import color_enabled

DEPLOCK_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "key": "bold",
    }
)

_console: Optional[Console] = None


def _get_console() -> Console:
    global _console

    if _console is None:
        use_color = color_enabled(sys.stdout)
        _console = Console(theme=DEPLOCK_THEME, no_color=not use_color, highlight=use_color)
    return _console


def reconfigure_console() -> None:
    """Drop the console so the next print picks up ``--no-color``/``NO_COLOR``."""
    global _console
    _console = None


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def _status(style: str, prefix: str, message: str) -> None:
    _get_console().print(f"{prefix} {message}", style=style, markup=False)


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _status("success", prefix, message)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _status("error", prefix, message)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _status("warning", prefix, message)


# ---------------------------------------------------------------------------
# Package listings
# ---------------------------------------------------------------------------


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: List[str],
    title: Optional[str] = None,
    caption: Optional[str] = None,
    row_style: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> None:
    """Render *rows* as a table with one column per entry in *headers*.

    The first column holds the package name and is emphasized. Missing
    cells render empty; *row_style* may return a Rich style per row.
    Nothing is printed for an empty listing.
    """
    if not rows:
        return

    table = Table(title=title, caption=caption, header_style="bold")
    for index, header in enumerate(headers):
        table.add_column(header, style="key" if index == 0 else None, overflow="fold")

    for row in rows:
        cells = ["" if row.get(h) is None else str(row[h]) for h in headers]
        table.add_row(*cells, style=row_style(row) if row_style else None)

    _get_console().print(table)


def print_json(data: Any) -> None:
    """Print *data* as indented JSON; strings are never treated as markup."""
    _get_console().print_json(json.dumps(data))
