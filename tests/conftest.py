# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import pwopen  # noqa: F401
except ImportError:
    raise ImportError("pwopen is not installed. Run: pip install -e '.[dev]'") from None

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from pwopen.config import AppConfig


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo logging_config.configure() between tests."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Tests start without any PWOPEN_* overrides from the developer shell."""
    from pwopen.config import ENV_VARS

    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> AppConfig:
    """Fast config: short timeouts, no grace wait."""
    return AppConfig(timeout_ms=1000, navigation_retries=0, render_wait_ms=0)


def _mock_page() -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock(return_value=None)
    page.close = AsyncMock()
    page.is_closed = MagicMock(return_value=False)
    page.screenshot = AsyncMock(return_value=b"\x89PNG fake")
    page.evaluate = AsyncMock(return_value=None)
    page.wait_for_load_state = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    return page


@pytest.fixture
def make_page():
    """Factory for mock Playwright Pages with the async methods pwopen uses."""
    return _mock_page

