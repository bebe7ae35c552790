# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Screenshot → Sixel terminal graphics.

The PNG captured by Playwright is decoded with Pillow, flattened onto black,
quantized to at most 256 palette entries and written to stdout as a DCS
sixel sequence. Rendering is best-effort: the first failure is logged, later
ones are silent, nothing is raised.
"""

from __future__ import annotations

import io
import logging
import sys
from itertools import groupby
from typing import TextIO

from PIL import Image

logger = logging.getLogger(__name__)

MAX_COLORS = 256

_DCS = "\x1bPq"  # enter sixel mode, default aspect ratio
_ST = "\x1b\\"
_SIXEL_OFFSET = 63  # "?" encodes an empty column
_BAND_HEIGHT = 6

_warned_once = False


def _flatten(image: Image.Image) -> Image.Image:
    """RGB copy of *image* with any transparency composited over black."""
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        background.alpha_composite(rgba)
        return background.convert("RGB")
    return image.convert("RGB")


def _percent(channel: int) -> int:
    return round(channel * 100 / 255)


def _encode_run(bits: bytes) -> str:
    """Sixel characters for one colour row of a band, with ``!n`` repeats."""
    out: list[str] = []
    for value, group in groupby(bits.rstrip(b"\x00")):
        count = sum(1 for _ in group)
        char = chr(_SIXEL_OFFSET + value)
        out.append(f"!{count}{char}" if count > 3 else char * count)
    return "".join(out)


def encode_sixel(image: Image.Image, max_colors: int = MAX_COLORS) -> str:
    """Encode a Pillow image as a complete sixel escape sequence."""
    rgb = _flatten(image)
    width, height = rgb.size
    if width == 0 or height == 0:
        raise ValueError("cannot encode an empty image")

    quantized = rgb.quantize(colors=max(1, min(MAX_COLORS, max_colors)))
    palette = quantized.getpalette() or []
    indices = quantized.tobytes()

    parts = [_DCS, f'"1;1;{width};{height}']
    # Only register palette entries that some pixel actually uses
    for n in sorted(set(indices)):
        r, g, b = palette[n * 3 : n * 3 + 3]
        parts.append(f"#{n};2;{_percent(r)};{_percent(g)};{_percent(b)}")

    bands: list[str] = []
    for top in range(0, height, _BAND_HEIGHT):
        rows: dict[int, bytearray] = {}
        for dy in range(min(_BAND_HEIGHT, height - top)):
            start = (top + dy) * width
            bit = 1 << dy
            for x, color in enumerate(indices[start : start + width]):
                row = rows.get(color)
                if row is None:
                    row = rows[color] = bytearray(width)
                row[x] |= bit
        bands.append("$".join(f"#{color}{_encode_run(bytes(rows[color]))}" for color in sorted(rows)))

    parts.append("-".join(bands))
    parts.append(_ST)
    return "".join(parts)


def render_sixel(image_bytes: bytes, stream: TextIO | None = None) -> None:
    """Decode a captured screenshot and print it as sixel followed by a newline."""
    global _warned_once  # noqa: PLW0603
    out = stream if stream is not None else sys.stdout
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.load()
            sequence = encode_sixel(image)
        out.write(sequence)
        out.write("\n")
        out.flush()
    except Exception as exc:
        if not _warned_once:
            logger.warning("Failed to render Sixel preview: %s", exc)
            _warned_once = True
