"""Tests for the stockledger logger namespace."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from stockledger.runtime.logging import (
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    LOGGER_NAMESPACE,
    configure_logging,
    get_logger,
    set_log_level,
)


@pytest.fixture
def namespace() -> Iterator[logging.Logger]:
    logger = configure_logging()
    level = logger.level
    formatters = [handler.formatter for handler in logger.handlers]
    yield logger
    logger.setLevel(level)
    for handler, formatter in zip(logger.handlers, formatters):
        handler.setFormatter(formatter)


def test_get_logger_prefixes_foreign_names() -> None:
    assert get_logger("scripts.import").name == "stockledger.scripts.import"
    assert get_logger("stockledger.store.memory").name == "stockledger.store.memory"
    assert get_logger(LOGGER_NAMESPACE).name == LOGGER_NAMESPACE


def test_namespace_does_not_propagate(namespace: logging.Logger) -> None:
    assert namespace.propagate is False
    assert len(namespace.handlers) == 1
    configure_logging()
    assert len(namespace.handlers) == 1


def test_set_log_level_accepts_names(namespace: logging.Logger) -> None:
    assert set_log_level("debug") == logging.DEBUG
    assert namespace.level == logging.DEBUG
    assert namespace.handlers[0].formatter._fmt == LOG_FORMAT_DEBUG

    assert set_log_level("warn") == logging.WARNING
    assert namespace.handlers[0].formatter._fmt == LOG_FORMAT


def test_unknown_level_name_falls_back_to_default(namespace: logging.Logger) -> None:
    assert set_log_level("chatty") == logging.INFO
