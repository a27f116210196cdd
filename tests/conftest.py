"""Shared pytest fixtures for stockledger tests."""

from __future__ import annotations

import pytest

from stockledger.runtime.config import load_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Settings are cached per path; tests must not see each other's files."""
    monkeypatch.delenv("STOCKLEDGER_CONFIG", raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()
