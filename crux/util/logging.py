"""Process logging setup.

Structured events go through logfire; this module only sets stdlib levels so
library chatter (httpx, dishka) stays out of the client console.
"""

import logging
import sys

from crux.config import Settings

# Libraries that log every request or resolution at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "dishka")


def log_level(settings: Settings) -> int:
    """Level for CRUX loggers in the given environment."""
    if settings.debug:
        return logging.DEBUG
    if settings.environment in ("staging", "production"):
        return logging.WARNING
    return logging.INFO


def setup_logging(settings: Settings) -> None:
    """Configure the root logger for a client process.

    Args:
        settings: Application settings
    """
    level = log_level(settings)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("crux").setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured for %s at %s",
        settings.environment,
        logging.getLevelName(level),
    )
