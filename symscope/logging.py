"""Logging setup: symscope's loggers write to stderr through rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "symscope"
LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_level(level: str) -> int:
    """Map a level name such as ``info`` to its numeric value."""
    name = level.strip().upper()
    if name not in LEVEL_NAMES:
        raise ValueError(f"unknown log level {level!r} (expected one of: {', '.join(LEVEL_NAMES)})")
    return logging.getLevelName(name)


def configure_logging(level: str = "WARNING", *, rich_tracebacks: bool = True) -> logging.Logger:
    """Attach a single stderr handler to the package logger; stdout stays reserved for results."""
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=rich_tracebacks,
        markup=False,
        show_path=False,
    )
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers[:] = [handler]
    logger.setLevel(resolve_level(level))
    return logger


def get_logger(name: str, *extra_names: str) -> logging.Logger:
    namespace = ".".join([name, *extra_names])
    if namespace != ROOT_LOGGER and not namespace.startswith(f"{ROOT_LOGGER}."):
        namespace = f"{ROOT_LOGGER}.{namespace}"
    return logging.getLogger(namespace)


__all__ = ["LEVEL_NAMES", "ROOT_LOGGER", "configure_logging", "get_logger", "resolve_level"]
