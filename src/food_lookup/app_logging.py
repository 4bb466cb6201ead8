"""Logging configuration helpers."""

import logging

_PACKAGE_LOGGER = "food_lookup"
_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"
# httpx logs every request at INFO, which drowns out lookup fallbacks.
_NOISY_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach one stream handler to the package logger and set its level."""
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
