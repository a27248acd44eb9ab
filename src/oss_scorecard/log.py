"""Logger construction from LOG_FILE / LOG_LEVEL settings."""

from __future__ import annotations

import logging
import sys

from oss_scorecard import config
from oss_scorecard.config import Settings

LOGGER_NAME = "oss_scorecard"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    config.LOG_LEVEL_INFO: logging.INFO,
    config.LOG_LEVEL_DEBUG: logging.DEBUG,
}


def configure_logging(settings: Settings) -> logging.Logger:
    """Return the package logger configured for ``settings``.

    Stdout carries the result records, so log output goes to LOG_FILE or,
    when that is unset, to stderr. LOG_LEVEL 0 silences the logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if settings.log_level == config.LOG_LEVEL_SILENT:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    if settings.log_file:
        handler: logging.Handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_LEVELS[settings.log_level])
    return logger
