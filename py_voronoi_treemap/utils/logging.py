"""structlog configuration shared by the API and scripts."""

import logging
import sys

import structlog


def configure_logging(settings) -> None:
    """
    Route structlog through the standard library at ``settings.log_level``.

    ``settings.log_format`` selects JSON lines ("json") or a human readable
    console renderer (anything else).
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
