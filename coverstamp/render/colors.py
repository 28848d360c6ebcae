from __future__ import annotations

import re

from PIL import ImageColor

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

_HEX_RGB = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)
# CSS rgba() with a fractional alpha; ImageColor only accepts 0-255 integers.
_CSS_RGBA = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*([\d.]+%?)\s*)?\)$",
    re.IGNORECASE,
)
WHITE: RGB = (255, 255, 255)


def hex_to_rgb(value: str | None) -> RGB:
    """Parse ``#rrggbb`` (hash optional). Anything else yields white."""
    match = _HEX_RGB.match((value or "").strip())
    if not match:
        return WHITE
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def _alpha_to_byte(text: str | None) -> int:
    if text is None:
        return 255
    if text.endswith("%"):
        fraction = float(text[:-1]) / 100.0
    else:
        fraction = float(text)
    return int(round(max(0.0, min(1.0, fraction)) * 255))


def parse_color(value: str | None, fallback: RGBA = (255, 255, 255, 255)) -> RGBA:
    text = (value or "").strip()
    if not text:
        return fallback
    match = _CSS_RGBA.match(text)
    if match:
        r, g, b = (min(255, int(match.group(i))) for i in (1, 2, 3))
        try:
            alpha = _alpha_to_byte(match.group(4))
        except ValueError:
            return fallback
        return (r, g, b, alpha)
    try:
        parsed = ImageColor.getrgb(text)
    except ValueError:
        return fallback
    if len(parsed) == 4:
        return (int(parsed[0]), int(parsed[1]), int(parsed[2]), int(parsed[3]))
    return (int(parsed[0]), int(parsed[1]), int(parsed[2]), 255)


def is_valid_color(value: str | None) -> bool:
    sentinel = (-1, -1, -1, -1)
    return parse_color(value, fallback=sentinel) != sentinel


def with_opacity(rgb: RGB, opacity: float) -> RGBA:
    alpha = int(round(max(0.0, min(1.0, float(opacity))) * 255))
    return (rgb[0], rgb[1], rgb[2], alpha)


def mix(a: RGBA, b: RGBA, t: float) -> RGBA:
    t = max(0.0, min(1.0, t))
    return (
        int(round(a[0] + (b[0] - a[0]) * t)),
        int(round(a[1] + (b[1] - a[1]) * t)),
        int(round(a[2] + (b[2] - a[2]) * t)),
        int(round(a[3] + (b[3] - a[3]) * t)),
    )
