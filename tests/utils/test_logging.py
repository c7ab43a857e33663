"""Tests for the nicemask logging helpers."""

from __future__ import annotations

import logging
import sys

import pytest

import nicemask
from nicemask.utils.logging import LEVEL_ENV_VAR, LOGGER_NAME, configure_logging, get_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    yield logger
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for h in saved_handlers:
        logger.addHandler(h)
    logger.setLevel(saved_level)


def _stderr_handlers(logger: logging.Logger) -> list:
    return [
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
    ]


def test_package_installs_null_handler() -> None:
    handlers = logging.getLogger(LOGGER_NAME).handlers
    assert nicemask.__version__
    assert any(isinstance(h, logging.NullHandler) for h in handlers)


def test_get_logger_names() -> None:
    assert get_logger().name == LOGGER_NAME
    assert get_logger("nicemask.mask_editor.session").name == "nicemask.mask_editor.session"


def test_configure_logging_sets_level(clean_logger) -> None:
    configure_logging("DEBUG", force=True)
    assert clean_logger.level == logging.DEBUG
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_is_idempotent(clean_logger) -> None:
    configure_logging("INFO", force=True)
    configure_logging("INFO")
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_reads_env(clean_logger, monkeypatch) -> None:
    monkeypatch.setenv(LEVEL_ENV_VAR, "warning")
    configure_logging(force=True)
    assert clean_logger.level == logging.WARNING


def test_configure_logging_never_touches_root(clean_logger) -> None:
    root_handlers = logging.getLogger().handlers[:]
    configure_logging("DEBUG", force=True)
    assert logging.getLogger().handlers == root_handlers
