"""Logging setup shared by the sidecar and library callers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

PACKAGE_LOGGER = "tfvcsync"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a stream handler to the package logger and set its level.

    Safe to call again when the configured level changes; the handler is only
    added once.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(getattr(h, "_tfvcsync", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._tfvcsync = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return package_logger
