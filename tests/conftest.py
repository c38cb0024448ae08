"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_generator_logging() -> Iterator[None]:
    """Drop handlers the CLI attaches so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("openapi_to_protocol")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
