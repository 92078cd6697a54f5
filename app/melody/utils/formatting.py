"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich. Human-readable
output goes to stdout, warnings and errors to stderr, so ``--json`` output
stays parseable.
"""

import json
import sys
from typing import Any

from rich.console import Console

from melody.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")


def print_json(data: Any) -> None:
    """Print JSON-serializable data for ``--json`` output."""
    console.print_json(json.dumps(data))


def status_markup(success: bool) -> str:
    """Markup for an OK/FAIL table cell."""
    return "[success]OK[/success]" if success else "[error]FAIL[/error]"
