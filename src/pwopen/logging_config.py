# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge. Console: ``[WARN] message`` lines, JSON: one object per line.

Leaf module: no pwopen imports. Safe to call early in startup.
"""

from __future__ import annotations

import logging
import sys

import structlog

_LEVEL_TAGS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARN",
    "error": "ERROR",
    "critical": "ERROR",
    "exception": "ERROR",
}

# Keys added by the shared processors that the console line leaves out
_CONSOLE_DROPPED_KEYS = ("timestamp", "logger")


def render_tagged(_logger: object, _method_name: str, event_dict: dict) -> str:
    """Render ``[TAG] event key=value`` for terminal use."""
    level = str(event_dict.pop("level", "info")).lower()
    event = event_dict.pop("event", "")
    exc_text = event_dict.pop("exception", None)
    for key in _CONSOLE_DROPPED_KEYS:
        event_dict.pop(key, None)

    line = f"[{_LEVEL_TAGS.get(level, level.upper())}] {event}"
    if event_dict:
        line += " " + " ".join(f"{k}={v}" for k, v in event_dict.items())
    if exc_text:
        line += "\n" + exc_text
    return line


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Configure structlog with stdlib bridge.

    Args:
        json_output: True for JSON lines, False for tagged human-readable lines.
        level: Root logger level (default INFO).
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else render_tagged

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
