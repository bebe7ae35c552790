# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Render-settle heuristic run after every successful navigation.

Navigation finishing does not mean the page is painted (late redirects,
web fonts, client-side rendering). The detector combines:

1. main-frame navigation idle: a 200ms debounce re-armed by every
   ``framenavigated`` event on the main frame, raced against a hard ceiling;
2. a ``load`` state wait, only when step 1 saw a navigation;
3. ``document.fonts.ready`` plus two ``requestAnimationFrame`` callbacks;
4. a fixed grace period (``PWOPEN_RENDER_WAIT_MS``).

Every step is best-effort. ``SettleDetector.wait`` never raises a page error.
"""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Frame, Page

from .config import AppConfig

logger = logging.getLogger(__name__)

IDLE_MS = 200

_FONTS_AND_FRAMES_JS = """async () => {
  const fontsReady = document.fonts && document.fonts.ready;
  if (fontsReady) {
    await fontsReady;
  }
  await new Promise(resolve => requestAnimationFrame(() => resolve()));
  await new Promise(resolve => requestAnimationFrame(() => resolve()));
}"""


async def wait_for_main_frame_idle(page: Page, idle_ms: int, timeout_ms: int) -> bool:
    """Wait until the main frame stops navigating for *idle_ms*, or *timeout_ms* passes.

    Returns True if at least one main-frame navigation was observed.
    Both timers and the event listener are released before returning.
    """
    loop = asyncio.get_running_loop()
    settled: asyncio.Future[None] = loop.create_future()
    main_frame = page.main_frame
    saw_navigation = False
    idle_timer: asyncio.TimerHandle | None = None

    def finish() -> None:
        if not settled.done():
            settled.set_result(None)

    def schedule_idle() -> None:
        nonlocal idle_timer
        if idle_timer is not None:
            idle_timer.cancel()
        idle_timer = loop.call_later(idle_ms / 1000, finish)

    def on_navigated(frame: Frame) -> None:
        nonlocal saw_navigation
        if frame == main_frame and not settled.done():
            saw_navigation = True
            schedule_idle()

    ceiling_timer = loop.call_later(timeout_ms / 1000, finish)
    page.on("framenavigated", on_navigated)
    schedule_idle()
    try:
        await settled
    finally:
        page.remove_listener("framenavigated", on_navigated)
        ceiling_timer.cancel()
        if idle_timer is not None:
            idle_timer.cancel()
    return saw_navigation


class SettleDetector:
    """Decides when a freshly navigated page is visually stable."""

    def __init__(self, config: AppConfig, idle_ms: int = IDLE_MS) -> None:
        self.config = config
        self.idle_ms = idle_ms

    async def wait(self, page: Page) -> None:
        ceiling_ms = self.config.settle_timeout_ms

        saw_navigation = False
        try:
            saw_navigation = await wait_for_main_frame_idle(page, self.idle_ms, ceiling_ms)
        except Exception as exc:
            logger.warning("Navigation idle wait failed: %s", exc)

        if saw_navigation:
            try:
                await page.wait_for_load_state("load", timeout=ceiling_ms)
            except Exception as exc:
                logger.warning("Page did not reach load state: %s", exc)

        try:
            await page.evaluate(_FONTS_AND_FRAMES_JS)
        except Exception as exc:
            logger.warning("Render settle check failed: %s", exc)

        if self.config.render_wait_ms > 0:
            try:
                await page.wait_for_timeout(self.config.render_wait_ms)
            except Exception as exc:
                logger.debug("Render grace wait cut short: %s", exc)
