"""
Logging setup.

Modules log through ``structlog.get_logger()`` with key/value context;
this configures the processor chain once for the process.
"""

import logging
import sys

import structlog


def configure_logging(settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        settings: Settings providing log_level and log_format ("json" or "plain")
    """
    level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
