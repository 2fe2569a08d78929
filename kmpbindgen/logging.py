"""Logging setup for kmpbindgen runs."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "kmpbindgen"
_NO_COMPONENT = "-"

_CONSOLE_FORMAT = "[kmpbindgen] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[kmpbindgen] %(levelname)s %(name)s [%(component)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(component)s]: %(message)s"


class _ComponentField(logging.Filter):
    """Gives records logged outside a component a placeholder ``component``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = _NO_COMPONENT
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def component_logger(name: str, namespace: str) -> logging.LoggerAdapter:
    """Return a logger whose records are tagged with the component *namespace*."""
    return logging.LoggerAdapter(get_logger(name), {"component": namespace})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install console output, plus a DEBUG file sink when *log_file* is given.

    Verbose console output adds the logger name and the component each record
    belongs to. The file sink always records both, whatever the console level.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    # Calling twice must not duplicate output or leak open log files.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.addFilter(_ComponentField())
    console.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(console_level)
        return logger

    log_file = log_file.expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    sink = logging.FileHandler(log_file, encoding="utf-8")
    sink.setLevel(logging.DEBUG)
    sink.addFilter(_ComponentField())
    sink.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(sink)
    logger.setLevel(logging.DEBUG)
    return logger


__all__ = ["component_logger", "configure_logging", "get_logger"]
