"""Structured logging configuration for rendercaps.

Library modules log through structlog event calls such as
``logger.warning("rendercaps_unknown_keyword", keyword=..., line=...)``.
Applications (the CLI, a renderer embedding the registry) call
:func:`configure_logging` once to decide where those events go and how they
are rendered.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog


def _handler_options(log_file: Path | None) -> dict:
    if log_file is None:
        return {"stream": sys.stderr}
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return {"filename": str(log_file), "filemode": "a", "encoding": "utf-8"}


def _processors(json_output: bool, colors: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
    colors: bool = True,
) -> None:
    """Route structlog events through stdlib logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render one JSON object per event
        log_file: Append to this file instead of stderr
        colors: Colorize console output (ignored for JSON and files)
    """
    logging.basicConfig(
        format="%(message)s",
        **_handler_options(log_file),
        level=getattr(logging, level.upper()),
        force=True,
    )
    structlog.configure(
        processors=_processors(json_output, colors and log_file is None),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance (typically for ``__name__``)."""
    return structlog.get_logger(name)


def configure_from_settings(settings) -> None:
    """Configure logging from a :class:`rendercaps.config.Settings`."""
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=settings.log_file,
        colors=not settings.log_json,
    )
