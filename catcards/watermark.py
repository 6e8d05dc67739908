"""Watermark anchor placement.

Maps one of nine named anchors to a point inside a container plus the
text alignment to draw with. Colour is chosen by the caller.
"""

import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_ANCHOR = "bottom-center"

ROWS = ("top", "middle", "bottom")
COLUMNS = ("left", "center", "right")
ANCHORS = frozenset(f"{row}-{col}" for row in ROWS for col in COLUMNS)

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")

# Pillow two-letter text anchors: horizontal (l/m/r) + vertical (t/m/b)
_PIL_HORIZONTAL = {"left": "l", "center": "m", "right": "r"}
_PIL_VERTICAL = {"top": "t", "middle": "m", "bottom": "b"}


@dataclass(frozen=True)
class WatermarkPlacement:
    """Where and how to draw the watermark text."""

    x: float
    y: float
    text_align: str
    text_baseline: str

    @property
    def pil_anchor(self) -> str:
        return _PIL_HORIZONTAL[self.text_align] + _PIL_VERTICAL[self.text_baseline]

    def shifted(self, dx: float = 0, dy: float = 0) -> "WatermarkPlacement":
        return WatermarkPlacement(self.x + dx, self.y + dy, self.text_align, self.text_baseline)


def normalize_anchor(position: Optional[str]) -> str:
    """Normalize ``TopLeft`` / ``top_left`` / ``"top-left"`` to ``top-left``.

    Anything that still isn't one of the nine anchors becomes ``bottom-center``.
    """
    text = str(position or "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1]
    text = text.replace("_", "-")
    text = _CAMEL_BOUNDARY.sub(r"\1-\2", text)
    text = text.lower()
    return text if text in ANCHORS else DEFAULT_ANCHOR


def anchor_row(position: Optional[str]) -> str:
    return normalize_anchor(position).split("-", 1)[0]


def place(
    position: Optional[str],
    container_width: float,
    container_height: float,
    padding: float,
) -> WatermarkPlacement:
    """Place a watermark inside a ``container_width`` x ``container_height`` box.

    Coordinates are relative to the container's top-left corner; edges are
    inset by ``padding``, centres are not.
    """
    row, column = normalize_anchor(position).split("-", 1)

    if column == "left":
        x = padding
    elif column == "right":
        x = container_width - padding
    else:
        x = container_width / 2

    if row == "top":
        y = padding
    elif row == "bottom":
        y = container_height - padding
    else:
        y = container_height / 2

    return WatermarkPlacement(x=x, y=y, text_align=column, text_baseline=row)
