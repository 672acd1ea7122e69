"""Logging setup for the ``accesshub`` logger hierarchy."""

import logging
import sys

from accesshub.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach a single stream handler to the ``accesshub`` logger.

    Calling this again (e.g. one app per test) replaces the handler rather
    than stacking another one.
    """
    logger = logging.getLogger("accesshub")
    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_accesshub", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._accesshub = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
