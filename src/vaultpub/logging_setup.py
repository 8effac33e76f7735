"""Logging configuration for the vaultpub command line."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from vaultpub.config import LoggingSettings

PACKAGE_LOGGER = "vaultpub"
_HANDLER_MARKER = "_vaultpub_handler"


def configure_logging(settings: LoggingSettings, console: Console | None = None) -> logging.Logger:
    """Attach rich console output (and an optional log file) to the package logger.

    Calling this again replaces the handlers installed by a previous call, so
    the CLI can reconfigure after loading overrides.

    Args:
        settings: Level name and optional log file path.
        console: Console receiving log records; a stderr console by default.

    Returns:
        logging.Logger: The configured ``vaultpub`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = getattr(logging, settings.level.upper(), logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers: list[logging.Handler] = [rich_handler]

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_MARKER, True)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging"]
