"""Structured logging setup.

All modules log through ``structlog.get_logger()``; this module only decides
how events are rendered.
"""

import logging
import sys

import structlog

from paylink.core.config import LoggingConfig


def configure_logging(cfg: LoggingConfig) -> None:
    """Configure structlog processors from the logging section of Settings."""
    renderer = (
        structlog.processors.JSONRenderer()
        if cfg.format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(cfg.level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
