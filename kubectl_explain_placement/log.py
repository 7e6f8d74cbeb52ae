"""Logging for kubectl-explain-placement.

Named loggers per module, rendered on stderr through rich so that stdout
carries only the diagnosis.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_initialized = False
_console = Console(stderr=True)


def get_console() -> Console:
    return _console


def setup_logging(level: str = "WARNING") -> None:
    """Initialize logging once; later calls only adjust the level."""
    global _initialized

    log_level = getattr(logging, level.upper(), logging.WARNING)
    root = logging.getLogger()
    root.setLevel(log_level)

    if _initialized:
        for handler in root.handlers:
            handler.setLevel(log_level)
        return
    _initialized = True

    handler = RichHandler(
        console=_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
