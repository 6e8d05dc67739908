"""Path builders and translucent painting helpers shared by both themes."""

import math
from typing import Optional, Sequence

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

Point = tuple[float, float]
Box = tuple[int, int, int, int]


def rounded_rect_points(
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    segments: int = 8,
) -> list[Point]:
    """Outline of a rounded rectangle, clockwise from the top-right corner."""
    r = max(0.0, min(radius, width / 2, height / 2))
    if r == 0:
        return [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]

    corners = (
        (x + width - r, y + r, -90),
        (x + width - r, y + height - r, 0),
        (x + r, y + height - r, 90),
        (x + r, y + r, 180),
    )
    points: list[Point] = []
    for cx, cy, start in corners:
        for i in range(segments + 1):
            angle = math.radians(start + 90 * i / segments)
            points.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return points


def stadium_points(x: float, y: float, width: float, height: float, segments: int = 12) -> list[Point]:
    """Pill shape: straight top and bottom, semicircular ends."""
    return rounded_rect_points(x, y, width, height, min(width, height) / 2, segments)


def _bounds(points: Sequence[Point], pad: int, size: tuple[int, int]) -> Box:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    left = max(0, int(math.floor(min(xs))) - pad)
    top = max(0, int(math.floor(min(ys))) - pad)
    right = min(size[0], int(math.ceil(max(xs))) + pad)
    bottom = min(size[1], int(math.ceil(max(ys))) + pad)
    return left, top, right, bottom


def paint_path(
    draw: ImageDraw.ImageDraw,
    points: Sequence[Point],
    fill: Optional[tuple] = None,
    outline: Optional[tuple] = None,
    width: int = 1,
) -> None:
    """Fill and/or stroke a closed path. ``draw`` must blend (mode ``RGBA``)."""
    if fill is not None:
        draw.polygon(list(points), fill=fill)
    if outline is not None and width > 0:
        draw.line(list(points) + [points[0]], fill=outline, width=width, joint="curve")


def blur_behind(surface: Image.Image, points: Sequence[Point], radius: float) -> None:
    """Frost the pixels inside ``points`` (backdrop blur)."""
    if radius <= 0:
        return
    left, top, right, bottom = _bounds(points, 0, surface.size)
    if right <= left or bottom <= top:
        return
    region = surface.crop((left, top, right, bottom))
    blurred = region.filter(ImageFilter.GaussianBlur(radius))
    mask = Image.new("L", region.size, 0)
    ImageDraw.Draw(mask).polygon([(px - left, py - top) for px, py in points], fill=255)
    surface.paste(blurred, (left, top), mask)


def vertical_gradient(size: tuple[int, int], stops: Sequence[tuple[float, tuple]]) -> Image.Image:
    """Image filled with a top-to-bottom gradient through ``stops``.

    ``stops`` are ``(offset, color)`` pairs (all RGB or all RGBA) with offsets in ``[0, 1]``.
    """
    width, height = size
    offsets = np.array([s[0] for s in stops], dtype=float)
    colors = np.array([s[1] for s in stops], dtype=float)
    rows = np.linspace(0.0, 1.0, height) if height > 1 else np.zeros(1)
    column = np.stack(
        [np.interp(rows, offsets, colors[:, channel]) for channel in range(colors.shape[1])],
        axis=-1,
    )
    pixels = np.repeat(np.rint(column).astype(np.uint8)[:, np.newaxis, :], width, axis=1)
    return Image.fromarray(pixels)
