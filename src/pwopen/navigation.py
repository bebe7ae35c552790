# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Single-URL navigation with bounded, immediate retries."""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

logger = logging.getLogger(__name__)


def should_retry(attempt: int, max_retries: int) -> bool:
    """Whether a failure on zero-based *attempt* leaves another attempt."""
    return attempt < max(0, max_retries)


async def navigate(page: Page, url: str, *, timeout_ms: int, retries: int) -> None:
    """Load *url* waiting for the ``load`` event.

    Makes ``retries + 1`` attempts at most (negative retries count as 0),
    with no delay between them. Each failed attempt that will be retried
    logs a warning.

    Raises:
        PlaywrightError: the last attempt's error once attempts run out.
    """
    max_retries = max(0, retries)

    for attempt in range(max_retries + 1):
        try:
            await page.goto(url, wait_until="load", timeout=timeout_ms)
            return
        except PlaywrightError:
            if not should_retry(attempt, max_retries):
                raise
            logger.warning("Navigation failed, retrying (%d/%d): %s", attempt + 1, max_retries, url)
