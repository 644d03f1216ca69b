"""Tests for loguru configuration."""

import logging
import sys
from collections.abc import Iterator

import pytest
from loguru import logger

from category_explorer.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_stdlib_records_are_forwarded(capsys: pytest.CaptureFixture[str]) -> None:
    """The HTTP client's stdlib logger ends up in the loguru sink."""
    configure_logging(verbose=True)

    logging.getLogger("api").debug("Making request")

    assert "api: Making request" in capsys.readouterr().err


def test_debug_hidden_without_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=False)

    logger.debug("fetch details")
    logger.info("Expanded Birds")

    err = capsys.readouterr().err
    assert "fetch details" not in err
    assert "Expanded Birds" in err
