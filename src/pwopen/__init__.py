# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pwopen: open URLs in Chromium, wait for rendering to settle, preview as Sixel.

URLs are processed strictly one after another inside a single browser
session (one Chromium process, one context).
"""

from __future__ import annotations

from dataclasses import dataclass

__version__ = "0.1.0"


@dataclass(frozen=True, slots=True)
class RuntimeOptions:
    """Per-run flags resolved from the command line before the session starts."""

    headed: bool = False
    sandbox: bool = True
    screenshot: bool = False
    full_page: bool = False


@dataclass(frozen=True, slots=True)
class PageTask:
    """One URL plus the run's capture options. Owns exactly one page while processed."""

    url: str
    options: RuntimeOptions

    @property
    def wants_screenshot(self) -> bool:
        return self.options.screenshot
