"""Root logger setup for the CLI, driven by the ``[logging]`` config section."""

from __future__ import annotations

import logging

import structlog
from rich.console import Console
from rich.logging import RichHandler

from agromart.core.config import LoggingConfig


def json_formatter() -> logging.Formatter:
    """One JSON object per line: ts, level, logger, message (+ exception)."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(config: LoggingConfig, console: Console | None = None) -> logging.Handler:
    """Replace the root handlers with one built from *config* and return it."""
    if config.format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(json_formatter())
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(config.level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, root.level))
    return handler
