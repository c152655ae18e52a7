"""Shared fixtures for jsonrest tests."""

import logging

import pytest
from jsonrest.logging_config import AIOHTTP_LOGGERS, LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_jsonrest_logger():
    """Detach handlers that setup_logging() bound to pytest's captured streams."""
    yield
    for name in (LOGGER_NAME, *AIOHTTP_LOGGERS):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
