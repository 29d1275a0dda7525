"""Logging setup for callers that want kpisim output on stderr."""

import logging

PACKAGE_LOGGER = "kpisim"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure the package logger with timestamp and context.

    Safe to call more than once; only one handler is ever installed.

    Args:
        level: Logging level (default: INFO)

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    if not logger.handlers:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger
