"""Logging configuration shared by the CLI entry points."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from tidyup.config.models import LoggingSettings

_HANDLER_NAME = "tidyup-rich"


def configure_logging(settings: LoggingSettings, *, verbose: bool = False) -> None:
    """Attach a Rich handler to the `tidyup` logger at the configured level.

    Args:
        settings: Logging section of the active configuration.
        verbose: Force DEBUG output regardless of the configured level.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger("tidyup")
    logger.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


__all__ = ["configure_logging"]
