# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright browser session for pwopen.

Owns the Chromium lifecycle (one browser, one context per run), opens one
page per URL and guarantees ordered, idempotent teardown whether the batch
completes, a page fails, or SIGINT/SIGTERM arrives.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from . import PageTask, RuntimeOptions
from .config import AppConfig
from .errors import BrowserError, SessionInterrupted
from .interrupts import InterruptGuard
from .navigation import navigate
from .settle import SettleDetector
from .sixel import render_sixel

logger = logging.getLogger(__name__)


# ── Chromium auto-install ─────────────────────────────────────────

_chromium_install_attempted = False
_AUTO_INSTALL_TIMEOUT = 300  # seconds, Chromium is a ~140MB download


async def _auto_install_chromium() -> bool:
    """Run ``playwright install chromium`` once per process.

    Returns True if install succeeded, False otherwise.
    Installer output is captured so it does not interleave with page output.
    """
    global _chromium_install_attempted  # noqa: PLW0603
    if _chromium_install_attempted:
        return False
    _chromium_install_attempted = True

    logger.info("Chromium not found, running 'playwright install chromium' …")
    try:
        proc = await asyncio.create_subprocess_exec(
            sys.executable,
            "-m",
            "playwright",
            "install",
            "chromium",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=_AUTO_INSTALL_TIMEOUT)
        if proc.returncode == 0:
            logger.info("Chromium installed successfully")
            return True
        logger.warning(
            "playwright install chromium failed (rc=%d): %s",
            proc.returncode,
            stderr.decode(errors="replace")[:500],
        )
        return False
    except TimeoutError:
        logger.warning("Chromium install timed out after %ds", _AUTO_INSTALL_TIMEOUT)
        return False
    except Exception:
        logger.warning("Chromium auto-install failed", exc_info=True)
        return False


# ── Page runner ───────────────────────────────────────────────────


class PageRunner:
    """Navigate → settle → optional Sixel capture for one page.

    Failures are contained: they are logged with the URL and the batch
    moves on.
    """

    def __init__(self, config: AppConfig, settle_detector: SettleDetector | None = None) -> None:
        self.config = config
        self.settle_detector = settle_detector or SettleDetector(config)

    async def run(self, page: Page, task: PageTask) -> bool:
        """Process one URL on *page*. Returns False if it failed."""
        try:
            await navigate(
                page,
                task.url,
                timeout_ms=self.config.timeout_ms,
                retries=self.config.navigation_retries,
            )
            await self.settle_detector.wait(page)

            if task.wants_screenshot:
                screenshot = await page.screenshot(
                    type="png",
                    full_page=task.options.full_page,
                    scale="css",
                )
                # Sixel encoding is CPU-bound and runs off the loop thread
                await asyncio.to_thread(render_sixel, screenshot)
        except Exception as exc:
            logger.warning("Failed to open %s: %s", task.url, exc)
            return False
        logger.debug("Opened %s", task.url)
        return True


# ── Session lifecycle ─────────────────────────────────────────────


class BrowserSession:
    """One Chromium process plus one browsing context for a single batch run."""

    def __init__(
        self,
        config: AppConfig,
        options: RuntimeOptions,
        runner: PageRunner | None = None,
    ) -> None:
        self.config = config
        self.options = options
        self.runner = runner or PageRunner(config)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._interrupts = InterruptGuard(self.close_resources)

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser session not started.")
        return self._context

    @property
    def is_active(self) -> bool:
        return self._browser is not None or self._context is not None

    @property
    def interrupted(self) -> bool:
        return self._interrupts.requested

    async def _launch_browser(self) -> Browser:
        """Launch Chromium, auto-installing on first 'executable not found' error."""
        launch_kwargs = {
            "headless": not self.options.headed,
            "chromium_sandbox": self.options.sandbox,
        }
        try:
            return await self._playwright.chromium.launch(**launch_kwargs)
        except Exception as exc:
            if "executable doesn't exist" not in str(exc).lower():
                raise
            if await _auto_install_chromium():
                return await self._playwright.chromium.launch(**launch_kwargs)
            raise BrowserError(
                "Chromium is not installed and auto-install failed. Please run: playwright install chromium"
            ) from exc

    async def start(self) -> None:
        """Start the Playwright driver, launch the browser and create the context."""
        self._playwright = await async_playwright().start()
        self._browser = await self._launch_browser()
        self._context = await self._browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            user_agent=self.config.user_agent,
        )
        logger.debug(
            "Browser session started (headless=%s, sandbox=%s)",
            not self.options.headed,
            self.options.sandbox,
        )

    async def close_resources(self, reason: str | None = None) -> None:
        """Close context, then browser, then the Playwright driver.

        Idempotent: each handle is detached before it is closed, so a repeated
        or concurrent call finds nothing left to close. A failing step is
        logged and does not stop the next one.
        """
        if reason:
            logger.warning("Received %s, closing browser...", reason)

        context, self._context = self._context, None
        if context is not None:
            try:
                await context.close()
            except Exception as exc:
                logger.warning("Failed to close context: %s", exc)

        browser, self._browser = self._browser, None
        if browser is not None:
            try:
                await browser.close()
            except Exception as exc:
                logger.warning("Failed to close browser: %s", exc)

        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:
                logger.debug("Playwright driver stop failed: %s", exc)

    @asynccontextmanager
    async def _open_page(self) -> AsyncGenerator[Page, None]:
        """Exactly one page per URL, closed even when processing fails."""
        page = await self.context.new_page()
        try:
            yield page
        finally:
            if not page.is_closed():
                try:
                    await page.close()
                except Exception as exc:
                    logger.warning("Failed to close page: %s", exc)

    async def open_urls(self, urls: Sequence[str]) -> None:
        """Open *urls* one at a time in input order.

        Raises:
            SessionInterrupted: a registered signal stopped the batch.
        """
        if not urls:
            logger.warning("No valid URLs to open.")
            return

        self._interrupts.register()
        try:
            await self.start()
            for url in urls:
                if self.interrupted:
                    break
                async with self._open_page() as page:
                    await self.runner.run(page, PageTask(url=url, options=self.options))
        except Exception:
            # Handles torn down under our feet surface as Playwright errors
            if not self.interrupted:
                raise
            logger.debug("Session aborted by %s", self._interrupts.signal_name, exc_info=True)
        finally:
            # Handlers stay installed until teardown is over so that repeated
            # signals are still absorbed
            await self._interrupts.wait_teardown()
            await self.close_resources()
            self._interrupts.unregister()

        if self.interrupted:
            raise SessionInterrupted(self._interrupts.signal_name, self._interrupts.exit_code)


async def open_urls(urls: Sequence[str], options: RuntimeOptions, config: AppConfig) -> None:
    """Run one browser session over *urls*."""
    session = BrowserSession(config, options)
    await session.open_urls(urls)

