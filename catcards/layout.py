"""Card layout math.

Everything here works in logical (unscaled) pixels; compositors multiply
by the render scale. No I/O and no drawing, so the height of a card can
be computed (and tested) without allocating a canvas.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .models import DynamicField, FieldConfig, PriceValue, ProductRenderData, ThemeKind

# Typography (logical px)
TITLE_FONT_SIZE = 27
SUBTITLE_FONT_SIZE = 17
FIELD_FONT_SIZE = 16
FIELD_LINE_HEIGHT = FIELD_FONT_SIZE * 1.4
FIELD_GAP = 2

# Vertical rhythm of the details section
TITLE_TOP_SPACING = 10
SPACING_AFTER_TITLE = 12
SPACING_AFTER_SUBTITLE = 10
SPACING_BEFORE_FIELDS = 12
SPACING_AFTER_FIELDS = 12


@dataclass(frozen=True)
class ThemeMetrics:
    """Per-theme constants that change the card height."""

    details_padding: float
    price_bar_height: float
    bottom_margin: float


CLASSIC_METRICS = ThemeMetrics(details_padding=4, price_bar_height=28, bottom_margin=0)
GLASS_METRICS = ThemeMetrics(details_padding=8, price_bar_height=40, bottom_margin=24)


def metrics_for(theme: ThemeKind) -> ThemeMetrics:
    return GLASS_METRICS if theme is ThemeKind.GLASS else CLASSIC_METRICS


def has_price(price: PriceValue) -> bool:
    """A price counts only when it is non-empty and non-zero.

    ``""``, ``None``, ``0`` and ``"0"``/``"0.00"`` are all "no price".
    Non-numeric text (e.g. ``"On request"``) is shown as-is.
    """
    if price is None or isinstance(price, bool):
        return False
    if isinstance(price, (int, float)):
        return price != 0
    text = str(price).strip()
    if not text:
        return False
    try:
        return float(text) != 0
    except ValueError:
        return True


def format_price(price: PriceValue, unit: Optional[str] = "", symbol: Optional[str] = "") -> str:
    """``"{symbol}{price} {unit}"``; the unit is dropped when empty or ``"None"``."""
    if isinstance(price, float) and price.is_integer():
        amount = str(int(price))
    else:
        amount = str(price).strip()
    unit = (unit or "").strip()
    if unit and unit != "None":
        return f"{symbol or ''}{amount} {unit}"
    return f"{symbol or ''}{amount}"


def counted_fields(
    product: ProductRenderData,
    enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
) -> list[DynamicField]:
    """Fields that take a line on the card, in source order."""
    fields = list(product.fields)
    if enabled_fields is not None:
        keys = {f.key if isinstance(f, FieldConfig) else str(f) for f in enabled_fields}
        fields = [f for f in fields if f.key in keys]
    return [f for f in fields if f.is_rendered]


@dataclass(frozen=True)
class CardLayout:
    """Section heights of one card, in logical px."""

    width: float
    image_height: float
    details_height: float
    price_bar_height: float
    bottom_margin: float
    field_count: int

    @property
    def details_body_height(self) -> float:
        """Details section without the price bar."""
        return self.details_height - self.price_bar_height

    @property
    def total_height(self) -> float:
        return self.image_height + self.details_height + self.bottom_margin


def compute_layout(
    product: ProductRenderData,
    theme: ThemeKind = ThemeKind.CLASSIC,
    enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
    width: Optional[float] = None,
) -> CardLayout:
    metrics = metrics_for(theme)
    base_width = width if width is not None else theme.base_width
    image_height = base_width / product.crop_aspect_ratio

    details = metrics.details_padding
    details += TITLE_TOP_SPACING + TITLE_FONT_SIZE + SPACING_AFTER_TITLE
    if product.subtitle:
        details += SUBTITLE_FONT_SIZE + SPACING_AFTER_SUBTITLE
    details += SPACING_BEFORE_FIELDS

    fields = counted_fields(product, enabled_fields)
    details += len(fields) * (FIELD_LINE_HEIGHT + FIELD_GAP)
    details += SPACING_AFTER_FIELDS

    price_bar = metrics.price_bar_height if has_price(product.price) else 0
    details += price_bar
    details += metrics.details_padding

    return CardLayout(
        width=base_width,
        image_height=image_height,
        details_height=details,
        price_bar_height=price_bar,
        bottom_margin=metrics.bottom_margin,
        field_count=len(fields),
    )


def compute_card_height(
    product: ProductRenderData,
    theme: ThemeKind = ThemeKind.CLASSIC,
    enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
    width: Optional[float] = None,
) -> float:
    """Total logical card height for ``product`` under ``theme``."""
    return compute_layout(product, theme, enabled_fields, width).total_height


def canvas_size(width: float, height: float, scale: float) -> tuple[int, int]:
    """Pixel size of the surface for a logical ``width`` x ``height`` card."""
    return (max(1, round(width * scale)), max(1, round(height * scale)))
