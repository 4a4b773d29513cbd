"""Logging utilities."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from hostsampler.config.loader import LoggingConfig

FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(config: LoggingConfig, level: str | None = None) -> None:
    """Configure the logging subsystem.

    Log records go to stderr through rich, and to ``config.file`` as plain
    lines when a file is configured. Stdout stays reserved for the console
    sink.

    Args:
        config: Logging section of the configuration
        level: Level overriding ``config.level`` (from the command line)
    """
    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    ]

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=(level or config.level).upper(),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    logging.getLogger(__name__).debug("Logging configured (file=%s)", config.file)
