from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# ------------- Shared console and logger
console = Console()
FORMAT = "%(message)s"
logger = logging.getLogger("pingx")


def configure_logging(level: str | int = "INFO") -> None:
    """Route the ``pingx`` logger through rich."""
    logging.basicConfig(
        level=level,
        format=FORMAT,
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                markup=True,
                show_time=False,
            )
        ],
    )
    logger.setLevel(level)
