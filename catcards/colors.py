"""Color parsing and the light/dark rules used by both card themes.

Colors arrive as CSS-ish strings from product settings: ``#RRGGBB``,
``#RGB``, ``rgb(r, g, b)`` or a named color such as ``white``. Only the
hex and ``rgb()`` forms can be lightened or darkened; anything else is
passed through untouched.
"""

import re
from dataclasses import dataclass
from typing import Optional

from PIL import ImageColor

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(r"^rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$")
# CSS rgba() with a fractional alpha, which ImageColor rejects
_RGBA_RE = re.compile(r"^rgba\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*[\d.]+\s*\)$")

WHITE_NAMES = {"white", "#fff", "#ffffff"}
BLACK: RGB = (0, 0, 0)


def _clamp(channel: int) -> int:
    return max(0, min(255, channel))


def parse_rgb(color: Optional[str]) -> Optional[RGB]:
    """Parse ``#RRGGBB``/``#RGB``/``rgb()`` into a channel tuple, else None."""
    if not color:
        return None
    text = color.strip()
    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    match = _RGB_RE.match(text)
    if match:
        return tuple(_clamp(int(match.group(i))) for i in range(1, 4))
    return None


def lighten(color: str, amount: int) -> str:
    """Add ``amount`` to every channel; a negative amount darkens.

    Unparseable formats (named colors, hsl, ...) come back unchanged.
    """
    rgb = parse_rgb(color)
    if rgb is None:
        return color
    r, g, b = (_clamp(c + amount) for c in rgb)
    return f"rgb({r}, {g}, {b})"


def darken(color: str, amount: int) -> str:
    return lighten(color, -abs(amount))


def to_rgba(color: Optional[str], alpha: float = 1.0) -> RGBA:
    """Resolve any color string to an RGBA tuple; unknown strings become black."""
    rgb = parse_rgb(color)
    match = _RGBA_RE.match((color or "").strip()) if rgb is None else None
    if match:
        rgb = tuple(_clamp(int(match.group(i))) for i in range(1, 4))
    elif rgb is None:
        try:
            rgb = ImageColor.getrgb(color or "")[:3]
        except ValueError:
            rgb = BLACK
    return (*rgb, round(_clamp_alpha(alpha) * 255))


def _clamp_alpha(alpha: float) -> float:
    return max(0.0, min(1.0, alpha))


def luminance(color: Optional[str]) -> float:
    r, g, b, _ = to_rgba(color)
    return (r * 299 + g * 587 + b * 114) / 1000


def is_white(color: Optional[str]) -> bool:
    return (color or "").strip().lower() in WHITE_NAMES


def is_light_color(color: Optional[str]) -> bool:
    if is_white(color):
        return True
    return luminance(color) > 128


@dataclass(frozen=True)
class BadgePalette:
    """Fill, text and border colors for a badge."""

    fill: RGB
    text: RGB
    border: RGBA


DARK_BADGE = BadgePalette(fill=(0, 0, 0), text=(255, 255, 255), border=(255, 255, 255, 77))
LIGHT_BADGE = BadgePalette(fill=(255, 255, 255), text=(0, 0, 0), border=(0, 0, 0, 77))


def badge_palette(image_bg_color: Optional[str]) -> BadgePalette:
    """Dark badge on a white image box, light badge on anything else."""
    return DARK_BADGE if is_white(image_bg_color) else LIGHT_BADGE


def watermark_fill(background: Optional[str]) -> RGBA:
    """Near-black translucent text on light backgrounds, near-white otherwise."""
    if is_light_color(background):
        return to_rgba("#000000", 0.25)
    return to_rgba("#ffffff", 0.4)
