# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""SIGINT/SIGTERM handling scoped to one browser session.

``InterruptGuard`` is an explicit registration object: the session calls
``register()`` when it starts and ``unregister()`` when it ends, so no
handler outlives the session that installed it. The first delivered signal
sets the interrupt flag and schedules one teardown; later deliveries are
ignored.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable
from contextlib import suppress

logger = logging.getLogger(__name__)

# 128 + signal number, the shell convention
EXIT_CODES: dict[signal.Signals, int] = {
    signal.SIGINT: 130,
    signal.SIGTERM: 143,
}


class InterruptGuard:
    """Loop-level signal handlers that trigger a single async teardown."""

    def __init__(self, on_interrupt: Callable[[str], Awaitable[None]]) -> None:
        self._on_interrupt = on_interrupt
        self._loop: asyncio.AbstractEventLoop | None = None
        self._registered: list[signal.Signals] = []
        self._teardown_task: asyncio.Task | None = None
        self.received: signal.Signals | None = None

    @property
    def requested(self) -> bool:
        """The interrupt flag: True once any registered signal arrived."""
        return self.received is not None

    @property
    def signal_name(self) -> str | None:
        return self.received.name if self.received is not None else None

    @property
    def exit_code(self) -> int | None:
        return EXIT_CODES.get(self.received) if self.received is not None else None

    @property
    def is_registered(self) -> bool:
        return bool(self._registered)

    def register(self) -> None:
        """Install handlers on the running loop. Must be called from a coroutine."""
        if self._registered:
            return
        self._loop = asyncio.get_running_loop()
        for sig in EXIT_CODES:
            try:
                self._loop.add_signal_handler(sig, self._handle, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.warning("Signal handlers not supported on this platform")
                self.unregister()
                return
            self._registered.append(sig)
        logger.debug("Signal handlers registered: %s", ", ".join(s.name for s in self._registered))

    def unregister(self) -> None:
        """Remove installed handlers, restoring default signal behaviour."""
        if self._loop is not None:
            for sig in self._registered:
                with suppress(Exception):
                    self._loop.remove_signal_handler(sig)
        self._registered.clear()

    def _handle(self, sig: signal.Signals) -> None:
        if self.received is not None:
            logger.debug("Ignoring repeated %s during shutdown", sig.name)
            return
        self.received = sig
        loop = self._loop or asyncio.get_running_loop()
        self._teardown_task = loop.create_task(self._on_interrupt(sig.name))

    async def wait_teardown(self) -> None:
        """Wait for the signal-triggered teardown, if one was started."""
        if self._teardown_task is None:
            return
        try:
            await self._teardown_task
        except Exception:
            logger.warning("Interrupt teardown failed", exc_info=True)
