"""Logging setup for jsonrest and its command-line interface."""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

LOGGER_NAME = "jsonrest"

# Completions run on the transport thread, so the thread name is part of every line
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"

# aiohttp's own loggers, attached on request for transport debugging
AIOHTTP_LOGGERS = ("aiohttp.client", "aiohttp.internal")


def _handlers(
    level: int,
    log_file: Optional[Union[str, Path]],
    format_string: str,
    stream: Optional[TextIO],
) -> list[logging.Handler]:
    formatter = logging.Formatter(format_string)
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    force: bool = False,
    stream: Optional[TextIO] = None,
    include_aiohttp: bool = False,
) -> logging.Logger:
    """
    Configure the ``jsonrest`` logger.

    Log records go to stderr by default so that stdout carries only the
    rendered responses of the CLI. The level is always applied; handlers are
    only replaced when ``force`` is set or none are attached yet.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives the same records
        format_string: Custom format string (defaults to DEFAULT_FORMAT)
        force: Replace existing handlers
        stream: Console stream (defaults to sys.stderr)
        include_aiohttp: Also route aiohttp's client loggers to these handlers

    Returns:
        The configured ``jsonrest`` logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        handlers = _handlers(numeric_level, log_file, format_string or DEFAULT_FORMAT, stream)
        _replace_handlers(logger, handlers)

        for name in AIOHTTP_LOGGERS if include_aiohttp else ():
            aiohttp_logger = logging.getLogger(name)
            aiohttp_logger.setLevel(numeric_level)
            _replace_handlers(aiohttp_logger, handlers)
            aiohttp_logger.propagate = False

    # Keep records out of the root logger to avoid duplicate lines
    logger.propagate = False

    return logger
