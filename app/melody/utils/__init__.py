"""Utility modules for melody.

This module exports commonly used utility functions.
"""

from melody.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from melody.utils.pathexpand import expand_path, expand_vars, slugify
from melody.utils.shell import CommandResult, command_exists, run_command, run_powershell

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "expand_path",
    "expand_vars",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_powershell",
    "slugify",
]
