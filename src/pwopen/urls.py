# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL input: positional arguments or URL-like substrings pulled from stdin."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterable, Sequence
from typing import TextIO
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

_URL_RE = re.compile(r"https?://[^\s<>\"']+")
_TRAILING_PUNCT_RE = re.compile(r"[),.;:!?]+$")


def extract_urls(text: str) -> list[str]:
    """Find http(s) URLs in free text, dropping trailing sentence punctuation."""
    results: list[str] = []
    for match in _URL_RE.finditer(text):
        cleaned = _TRAILING_PUNCT_RE.sub("", match.group(0))
        if cleaned:
            results.append(cleaned)
    return results


def read_stdin_text(stream: TextIO | None = None) -> str:
    """Read all of stdin. Unreadable input counts as empty."""
    stream = stream if stream is not None else sys.stdin
    if stream is None:
        return ""
    try:
        return stream.read()
    except (OSError, UnicodeDecodeError, ValueError):
        logger.debug("stdin not readable", exc_info=True)
        return ""


def collect_inputs(args: Sequence[str], stream: TextIO | None = None) -> list[str]:
    """Return positional URLs, or URLs extracted from stdin when none were given."""
    if args:
        return list(args)
    return extract_urls(read_stdin_text(stream))


def is_valid_url(candidate: str) -> bool:
    """True for absolute http/https URLs with a host."""
    try:
        parsed = urlparse(candidate)
        # .port raises ValueError on out-of-range or non-numeric ports
        _ = parsed.port
    except ValueError:
        return False
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False
    return bool(parsed.hostname)


def validate_urls(inputs: Iterable[str]) -> list[str]:
    """Keep valid, de-duplicated URLs in input order; warn about the rest."""
    valid: list[str] = []
    seen: set[str] = set()
    for raw in inputs:
        candidate = raw.strip()
        if not candidate or any(ch.isspace() for ch in candidate) or not is_valid_url(candidate):
            logger.warning("Invalid URL skipped: %s", raw)
            continue
        if candidate in seen:
            continue
        seen.add(candidate)
        valid.append(candidate)
    return valid
