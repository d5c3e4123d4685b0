"""
Logging configuration.
"""

import logging

from rich.logging import RichHandler

from assessment_export.util.progress import console


def configure_logging(verbose: bool = False) -> None:
    """
    Route package logging through rich.

    Args:
        verbose: Log at DEBUG instead of WARNING
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
