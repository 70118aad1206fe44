"""Shared fixtures for the deplock test suite."""

from __future__ import annotations

import logging
from typing import Generator

import pytest

import deplock.utils.logger as logger_module


@pytest.fixture(autouse=True)
def clean_logger_state() -> Generator[None, None, None]:
    """Restore the ``deplock`` logger after each test.

    ``setup_logging`` (called directly or through the CLI) stops propagation
    to the root logger, which would hide records from ``caplog`` in later
    tests.
    """
    yield

    root_logger = logging.getLogger(logger_module.ROOT_LOGGER_NAME)
    root_logger.handlers = [logging.NullHandler()]
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
