"""structlog setup shared by the API and the command line."""

import logging
import sys

import structlog

from tech_support.config.settings import LoggingSettings


def configure_logging(settings: LoggingSettings) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Level and renderer (``json`` or ``console``).
    """
    level = getattr(logging, settings.level)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    if settings.format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
