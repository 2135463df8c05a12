"""Handler setup for the scorepad package logger."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str = "scorepad", level: int = logging.INFO) -> logging.Logger:
    """
    Route scorepad log records to stderr at ``level``.

    Modules only create loggers; the CLI calls this once. Calling it again
    changes the level without stacking handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
