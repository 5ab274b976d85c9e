"""Logging setup for rpgvault rankings."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO") -> None:
    """Route standard logging through a Rich handler on stderr.

    Args:
        level: Logging level name, e.g. "INFO" or "DEBUG"
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        ],
        force=True,
    )
