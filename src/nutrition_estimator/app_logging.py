"""Logging configuration helpers."""

import logging

LOGGER_NAME = "nutrition_estimator"


def configure_logging(debug: bool = False) -> None:
    """Configure package logging with a single stream handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
