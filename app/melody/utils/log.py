"""Logging setup for the command line.

Library modules only create module loggers; handlers are installed here,
once, by the CLI entry point.
"""

import logging

from rich.logging import RichHandler

from melody.utils.formatting import err_console

LOGGER_NAME = "melody"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the ``melody`` logger to write to stderr through Rich.

    Args:
        verbose: Log at DEBUG level with source locations.
        quiet: Only log errors.

    Returns:
        The configured package logger.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Repeated invocations (tests, CliRunner) must not stack handlers
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=err_console,
            show_time=verbose,
            show_path=verbose,
            rich_tracebacks=verbose,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    for handler in logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)

    return logger
