# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pwopen exception hierarchy.

Only configuration errors and session setup errors surface to the process
exit status. Per-URL navigation and capture failures are Playwright's own
errors and are contained by the page runner.
"""

from __future__ import annotations


class PwopenError(Exception):
    """Base exception for all pwopen errors."""


class ConfigError(PwopenError):
    """Invalid PWOPEN_* configuration (fatal before any browser launch)."""


class BrowserError(PwopenError):
    """Browser could not be launched."""


class SessionInterrupted(PwopenError):
    """The session was torn down because of SIGINT/SIGTERM."""

    def __init__(self, signal_name: str, exit_code: int) -> None:
        super().__init__(f"Interrupted by {signal_name}")
        self.signal_name = signal_name
        self.exit_code = exit_code
