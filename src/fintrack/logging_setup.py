"""Logging configuration for the command line entry point."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def configure_logging(level: str = "WARNING") -> None:
    """Attach a single stderr handler to the root logger.

    Library modules only create named loggers. Calling this again replaces
    the handler, binding it to the current sys.stderr.
    """
    global _handler

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    root = logging.getLogger()
    root.setLevel(numeric_level)
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
