"""Card compositor: draws a product card onto a Pillow surface.

Two visual variants share one pipeline (``CardCompositor.render``):

- classic: flat price strip, image box, lightened details panel
- glass: gradient backdrop, image box, frosted rounded panel overlapping it

The variants differ only in the hooks of their ``ThemeStrategy``. All
geometry comes from ``layout.compute_layout`` so the surface height always
matches ``compute_card_height``.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from PIL import Image, ImageDraw, ImageFont, ImageOps

from .colors import badge_palette, is_white, lighten, to_rgba, watermark_fill
from .config import settings
from .errors import ImageLoadError
from .image_loader import ImageLoader
from .layout import (
    FIELD_FONT_SIZE,
    FIELD_GAP,
    SPACING_AFTER_FIELDS,
    SPACING_AFTER_SUBTITLE,
    SPACING_AFTER_TITLE,
    SPACING_BEFORE_FIELDS,
    SUBTITLE_FONT_SIZE,
    TITLE_FONT_SIZE,
    TITLE_TOP_SPACING,
    CardLayout,
    canvas_size,
    compute_layout,
    counted_fields,
    format_price,
    has_price,
)
from .models import DynamicField, FieldConfig, ProductRenderData, RenderOptions, ThemeKind, WatermarkConfig
from .shapes import blur_behind, paint_path, rounded_rect_points, stadium_points, vertical_gradient
from .utils import get_logger
from .watermark import anchor_row, place

logger = get_logger(__name__)

PLACEHOLDER_FILL = "#cccccc"
PLACEHOLDER_TEXT_COLOR = "#999999"
PLACEHOLDER_TEXT = "Image not found"
PLACEHOLDER_FONT_SIZE = 20

BADGE_FONT_SIZE = 13
BADGE_INSET = 12
WATERMARK_FONT_SIZE = 10

# Glass panel geometry (logical px)
GLASS_SIDE_MARGIN = 16
GLASS_PANEL_OVERLAP = 30
GLASS_PANEL_EXTRA_HEIGHT = 28
GLASS_PANEL_RADIUS = 16
GLASS_PANEL_PADDING = 16
GLASS_CONTENT_TOP = 25
GLASS_FIELD_INDENT = 20
GLASS_LABEL_COLUMN = 85
GLASS_PRICE_GAP = 8
GLASS_PRICE_RADIUS = 10

FontStyle = str  # "regular" | "bold" | "italic"


class FontBook:
    """Caches fonts by (style, pixel size).

    Looks for the configured TrueType files and falls back to Pillow's
    bundled scalable font, so text anchors always work.
    """

    def __init__(
        self,
        regular: Optional[Path] = None,
        bold: Optional[Path] = None,
        italic: Optional[Path] = None,
    ):
        self._paths = {
            "regular": regular or settings.font_path,
            "bold": bold or settings.bold_font_path,
            "italic": italic or settings.italic_font_path,
        }
        self._cache: dict[tuple[FontStyle, int], ImageFont.FreeTypeFont] = {}

    def get(self, size: int, style: FontStyle = "regular") -> ImageFont.FreeTypeFont:
        size = max(1, int(size))
        key = (style, size)
        if key not in self._cache:
            self._cache[key] = self._load(style, size)
        return self._cache[key]

    def _load(self, style: FontStyle, size: int) -> ImageFont.FreeTypeFont:
        for path in (self._paths.get(style), self._paths["regular"]):
            if path and Path(path).exists():
                try:
                    return ImageFont.truetype(str(path), size)
                except OSError as e:
                    logger.warning(f"Failed to load font {path}: {e}")
        return ImageFont.load_default(size=size)


@dataclass
class CardFrame:
    """Per-render geometry in device pixels plus the inputs that produced it."""

    product: ProductRenderData
    options: RenderOptions
    layout: CardLayout
    fields: list[DynamicField]
    width: int
    height: int
    image_top: float

    @property
    def scale(self) -> float:
        return self.options.scale

    @property
    def image_height(self) -> float:
        return self.layout.image_height * self.scale

    @property
    def image_bottom(self) -> float:
        return self.image_top + self.image_height

    @property
    def image_box(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) with exclusive right/bottom edges."""
        return (0, round(self.image_top), self.width, max(round(self.image_bottom), round(self.image_top) + 1))

    @property
    def price_shown(self) -> bool:
        return has_price(self.product.price)

    @property
    def price_text(self) -> str:
        return format_price(self.product.price, self.product.price_unit, self.options.currency_symbol)

    def px(self, value: float) -> float:
        return value * self.scale


def _draw(surface: Image.Image) -> ImageDraw.ImageDraw:
    return ImageDraw.Draw(surface, "RGBA")


def _fill_box(surface: Image.Image, box: tuple[float, float, float, float], color: str) -> None:
    left, top, right, bottom = box
    if right <= left or bottom <= top:
        return
    _draw(surface).rectangle((left, top, right - 1, bottom - 1), fill=to_rgba(color))


class ThemeStrategy(ABC):
    """Drawing hooks for one visual variant."""

    theme: ThemeKind
    watermark_padding: float = 10

    def __init__(self, fonts: FontBook):
        self.fonts = fonts

    def font(self, frame: CardFrame, size: float, style: FontStyle = "regular") -> ImageFont.FreeTypeFont:
        return self.fonts.get(math.floor(size * frame.scale), style)

    def image_top(self, layout: CardLayout, options: RenderOptions) -> float:
        """Logical y of the image section."""
        return 0

    @abstractmethod
    def paint_background(self, surface: Image.Image, frame: CardFrame) -> None:
        pass

    def paint_before_image(self, surface: Image.Image, frame: CardFrame) -> None:
        pass

    @abstractmethod
    def badge_origin(self, frame: CardFrame, width: float, height: float) -> tuple[float, float]:
        pass

    @abstractmethod
    def paint_badge(self, surface: Image.Image, frame: CardFrame, text: str) -> None:
        pass

    @abstractmethod
    def paint_details(self, surface: Image.Image, frame: CardFrame) -> None:
        pass

    @abstractmethod
    def watermark_container(self, frame: CardFrame, row: str) -> tuple[float, float, float, float, str]:
        """(x, y, width, height, background colour) of the box a watermark sits in."""
        pass

    def paint_watermark(self, surface: Image.Image, frame: CardFrame, watermark: WatermarkConfig) -> None:
        x, y, width, height, background = self.watermark_container(frame, anchor_row(watermark.position))
        placement = place(watermark.position, width, height, frame.px(self.watermark_padding)).shifted(x, y)
        _draw(surface).text(
            (placement.x, placement.y),
            watermark.text,
            font=self.font(frame, WATERMARK_FONT_SIZE),
            fill=watermark_fill(background),
            anchor=placement.pil_anchor,
        )

    def badge_size(self, frame: CardFrame, text: str, pad_h: float, pad_v: float, style: FontStyle):
        font = self.font(frame, BADGE_FONT_SIZE, style)
        width = font.getlength(text) + frame.px(pad_h) * 2
        height = math.floor(frame.px(BADGE_FONT_SIZE)) + frame.px(pad_v) * 2
        return font, width, height

    def paint_fields(
        self,
        surface: Image.Image,
        frame: CardFrame,
        y: float,
        label_x: float,
        colon_x: float,
        value_x: float,
        color: str,
        style: FontStyle = "regular",
    ) -> float:
        """Draw ``label : value`` lines from ``y``; returns the y after the last line."""
        draw = _draw(surface)
        font = self.font(frame, FIELD_FONT_SIZE, style)
        size = math.floor(frame.px(FIELD_FONT_SIZE))
        fill = to_rgba(color)
        for item in frame.fields:
            baseline = y + size * 0.8
            draw.text((label_x, baseline), item.label, font=font, fill=fill, anchor="ls")
            draw.text((colon_x, baseline), ":", font=font, fill=fill, anchor="ls")
            draw.text((value_x, baseline), item.display_value, font=font, fill=fill, anchor="ls")
            y += size * 1.4 + frame.px(FIELD_GAP)
        return y

    def paint_title(
        self,
        surface: Image.Image,
        frame: CardFrame,
        y: float,
        color: str,
        title_style: FontStyle = "regular",
        shadow: bool = False,
    ) -> float:
        """Centred title and optional ``(subtitle)``; returns the y below them."""
        draw = _draw(surface)
        center = frame.width / 2
        size = math.floor(frame.px(TITLE_FONT_SIZE))
        font = self.font(frame, TITLE_FONT_SIZE, title_style)
        baseline = y + size * 0.8
        if shadow:
            offset = frame.px(3)
            draw.text((center + offset, baseline + offset), frame.product.name, font=font, fill=(0, 0, 0, 51), anchor="ms")
        draw.text((center, baseline), frame.product.name, font=font, fill=to_rgba(color), anchor="ms")
        y += size + frame.px(SPACING_AFTER_TITLE)

        if frame.product.subtitle:
            size = math.floor(frame.px(SUBTITLE_FONT_SIZE))
            draw.text(
                (center, y + size * 0.8),
                f"({frame.product.subtitle})",
                font=self.font(frame, SUBTITLE_FONT_SIZE, "italic"),
                fill=to_rgba(color),
                anchor="ms",
            )
            y += size + frame.px(SPACING_AFTER_SUBTITLE)
        return y


class ClassicStrategy(ThemeStrategy):
    """Flat card: price strip, image box with drop shadow, lightened details panel."""

    theme = ThemeKind.CLASSIC
    watermark_padding = 10

    def _price_on_top(self, options: RenderOptions) -> bool:
        return (options.price_position or "top").strip().lower() != "bottom"

    def image_top(self, layout: CardLayout, options: RenderOptions) -> float:
        if layout.price_bar_height and self._price_on_top(options):
            return layout.price_bar_height
        return 0

    def paint_background(self, surface: Image.Image, frame: CardFrame) -> None:
        # Surface is allocated in background_color already
        pass

    def _paint_price_bar(self, surface: Image.Image, frame: CardFrame, top: float, bottom: float) -> None:
        _fill_box(surface, (0, top, frame.width, bottom), frame.options.bg_color)
        _draw(surface).text(
            (frame.width / 2, (top + bottom) / 2),
            frame.price_text,
            font=self.font(frame, 18),
            fill=to_rgba(frame.options.font_color),
            anchor="mm",
        )

    def paint_before_image(self, surface: Image.Image, frame: CardFrame) -> None:
        if frame.price_shown and self._price_on_top(frame.options):
            self._paint_price_bar(surface, frame, 0, frame.image_top)

    def badge_origin(self, frame: CardFrame, width: float, height: float) -> tuple[float, float]:
        inset = frame.px(BADGE_INSET)
        return frame.width - width - inset, frame.image_bottom - height - inset

    def paint_badge(self, surface: Image.Image, frame: CardFrame, text: str) -> None:
        palette = badge_palette(frame.options.image_bg_color)
        font, width, height = self.badge_size(frame, text, 10, 7, "regular")
        x, y = self.badge_origin(frame, width, height)
        draw = _draw(surface)
        points = stadium_points(x, y, width, height)
        paint_path(draw, points, fill=(*palette.fill, 242))
        paint_path(draw, points, outline=palette.border, width=max(1, round(frame.px(1))))
        draw.text((x + width / 2, y + height / 2 + frame.px(1)), text, font=font, fill=palette.text, anchor="mm")

    def paint_details(self, surface: Image.Image, frame: CardFrame) -> None:
        top = frame.image_bottom
        _fill_box(surface, (0, top, frame.width, frame.height), lighten(frame.options.bg_color, 40))
        self._paint_image_shadow(surface, frame, top)

        y = top + frame.px(TITLE_TOP_SPACING)
        y = self.paint_title(surface, frame, y, frame.options.font_color, shadow=True)
        y += frame.px(SPACING_BEFORE_FIELDS)

        font = self.font(frame, FIELD_FONT_SIZE)
        widest = max((font.getlength(f.label) for f in frame.fields), default=0)
        label_x = frame.px(24)
        colon_x = label_x + widest + frame.px(6)
        y = self.paint_fields(surface, frame, y, label_x, colon_x, colon_x + frame.px(16), frame.options.font_color)
        y += frame.px(SPACING_AFTER_FIELDS)

        if frame.price_shown and not self._price_on_top(frame.options):
            self._paint_price_bar(surface, frame, y, frame.height)

    def _paint_image_shadow(self, surface: Image.Image, frame: CardFrame, top: float) -> None:
        height = max(1, round(frame.px(25)))
        top = round(top)
        if top >= frame.height:
            return
        shadow = vertical_gradient(
            (frame.width, min(height, frame.height - top)),
            [(0, (0, 0, 0, 64)), (0.6, (0, 0, 0, 20)), (1, (0, 0, 0, 0))],
        )
        surface.paste(shadow.convert("RGB"), (0, top), shadow.getchannel("A"))

    def watermark_container(self, frame: CardFrame, row: str) -> tuple[float, float, float, float, str]:
        return 0, frame.image_top, frame.width, frame.image_height, frame.options.image_bg_color


class GlassStrategy(ThemeStrategy):
    """Gradient backdrop with a frosted, rounded details panel."""

    theme = ThemeKind.GLASS
    watermark_padding = 2

    def paint_background(self, surface: Image.Image, frame: CardFrame) -> None:
        bg = frame.options.bg_color
        stops = [
            (0, to_rgba(bg)[:3]),
            (0.5, to_rgba(lighten(bg, -20))[:3]),
            (1, to_rgba(bg)[:3]),
        ]
        surface.paste(vertical_gradient(surface.size, stops), (0, 0))

    def badge_origin(self, frame: CardFrame, width: float, height: float) -> tuple[float, float]:
        inset = frame.px(BADGE_INSET)
        return frame.width - width - inset, frame.image_top + inset

    def paint_badge(self, surface: Image.Image, frame: CardFrame, text: str) -> None:
        palette = badge_palette(frame.options.image_bg_color)
        font, width, height = self.badge_size(frame, text, 14, 8, "bold")
        x, y = self.badge_origin(frame, width, height)
        points = stadium_points(x, y, width, height)
        blur_behind(surface, points, frame.px(4))
        draw = _draw(surface)
        paint_path(draw, points, fill=(*palette.fill, 115))
        border_alpha = 153 if is_white(frame.options.image_bg_color) else 178
        paint_path(draw, points, outline=(255, 255, 255, border_alpha), width=max(1, round(frame.px(1.8))))
        draw.text((x + width / 2, y + height / 2 + frame.px(1)), text, font=font, fill=palette.text, anchor="mm")

    def panel_box(self, frame: CardFrame) -> tuple[float, float, float, float]:
        """(x, y, width, height) of the frosted panel."""
        margin = frame.px(GLASS_SIDE_MARGIN)
        return (
            margin,
            frame.image_bottom - frame.px(GLASS_PANEL_OVERLAP),
            frame.width - 2 * margin,
            frame.px(frame.layout.details_height + GLASS_PANEL_EXTRA_HEIGHT),
        )

    def paint_details(self, surface: Image.Image, frame: CardFrame) -> None:
        x, y, width, height = self.panel_box(frame)
        radius = frame.px(GLASS_PANEL_RADIUS)
        panel = rounded_rect_points(x, y, width, height, radius)

        blur_behind(surface, panel, frame.px(12))
        draw = _draw(surface)
        paint_path(draw, panel, fill=(255, 255, 255, 115))
        paint_path(draw, panel, outline=(255, 255, 255, 255), width=max(1, round(frame.px(1.8))))

        color = frame.options.font_color or "#000000"
        cursor = y + frame.px(GLASS_CONTENT_TOP)
        cursor = self.paint_title(surface, frame, cursor, color, title_style="bold")
        cursor += frame.px(SPACING_BEFORE_FIELDS)

        label_x = x + frame.px(GLASS_PANEL_PADDING + GLASS_FIELD_INDENT)
        colon_x = label_x + frame.px(GLASS_LABEL_COLUMN)
        cursor = self.paint_fields(surface, frame, cursor, label_x, colon_x, colon_x + frame.px(10), color)
        cursor += frame.px(SPACING_AFTER_FIELDS)

        if frame.price_shown:
            self._paint_price_button(surface, frame, x, width, cursor)

    def _paint_price_button(self, surface: Image.Image, frame: CardFrame, panel_x: float, panel_width: float, y: float):
        padding = frame.px(GLASS_PANEL_PADDING)
        bar_x = panel_x + padding
        bar_y = y + frame.px(GLASS_PRICE_GAP)
        bar_width = panel_width - 2 * padding
        bar_height = frame.px(frame.layout.price_bar_height)
        bar = rounded_rect_points(bar_x, bar_y, bar_width, bar_height, frame.px(GLASS_PRICE_RADIUS))

        draw = _draw(surface)
        paint_path(draw, bar, fill=to_rgba(frame.options.bg_color))
        paint_path(draw, bar, outline=(0, 0, 0, 26), width=max(1, round(frame.px(1))))
        text_color = (255, 255, 255) if is_white(frame.options.font_color) else (0, 0, 0)
        draw.text(
            (bar_x + bar_width / 2, bar_y + bar_height / 2),
            frame.price_text,
            font=self.font(frame, 20, "bold"),
            fill=text_color,
            anchor="mm",
        )

    def watermark_container(self, frame: CardFrame, row: str) -> tuple[float, float, float, float, str]:
        if row == "bottom":
            return 0, 0, frame.width, frame.height, frame.options.bg_color
        return 0, frame.image_top, frame.width, frame.image_height, frame.options.image_bg_color


class CardCompositor:
    """Renders a ``ProductRenderData`` into a Pillow image for a given theme."""

    def __init__(self, image_loader: Optional[ImageLoader] = None, fonts: Optional[FontBook] = None):
        self.image_loader = image_loader or ImageLoader()
        self.fonts = fonts or FontBook()
        self._strategies: dict[ThemeKind, ThemeStrategy] = {
            ThemeKind.CLASSIC: ClassicStrategy(self.fonts),
            ThemeKind.GLASS: GlassStrategy(self.fonts),
        }

    def strategy_for(self, theme: Union[ThemeKind, str]) -> ThemeStrategy:
        return self._strategies[ThemeKind.parse(theme)]

    def render(
        self,
        product: ProductRenderData,
        options: RenderOptions,
        watermark: Optional[WatermarkConfig] = None,
        theme: Union[ThemeKind, str] = ThemeKind.CLASSIC,
        enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
    ) -> Image.Image:
        """
        Draw one card.

        Args:
            product: What to draw
            options: Width, scale and colours
            watermark: Optional watermark; drawn only when enabled with text
            theme: ``classic`` or ``glass``
            enabled_fields: Restrict which product fields are drawn

        Returns:
            An RGB image of ``canvas_size(width, card height, scale)``
        """
        if options.scale <= 0:
            raise ValueError(f"Render scale must be positive, got {options.scale}")

        strategy = self.strategy_for(theme)
        layout = compute_layout(product, strategy.theme, enabled_fields, options.width)
        size = canvas_size(layout.width, layout.total_height, options.scale)
        surface = Image.new("RGB", size, to_rgba(options.background_color)[:3])

        frame = CardFrame(
            product=product,
            options=options,
            layout=layout,
            fields=counted_fields(product, enabled_fields),
            width=size[0],
            height=size[1],
            image_top=strategy.image_top(layout, options) * options.scale,
        )

        strategy.paint_background(surface, frame)
        strategy.paint_before_image(surface, frame)
        self._paint_image_section(surface, frame, strategy)
        badge = (product.badge or "").strip()
        if badge:
            strategy.paint_badge(surface, frame, badge.upper())
        strategy.paint_details(surface, frame)
        if watermark is not None and watermark.is_active:
            strategy.paint_watermark(surface, frame, watermark)

        logger.debug(f"Rendered {strategy.theme.value} card for {product.name!r} at {size[0]}x{size[1]}")
        return surface

    def render_classic(
        self,
        product: ProductRenderData,
        options: RenderOptions,
        watermark: Optional[WatermarkConfig] = None,
        enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
    ) -> Image.Image:
        return self.render(product, options, watermark, ThemeKind.CLASSIC, enabled_fields)

    def render_glass(
        self,
        product: ProductRenderData,
        options: RenderOptions,
        watermark: Optional[WatermarkConfig] = None,
        enabled_fields: Optional[Iterable[Union[FieldConfig, str]]] = None,
    ) -> Image.Image:
        return self.render(product, options, watermark, ThemeKind.GLASS, enabled_fields)

    def _load_image(self, product: ProductRenderData) -> Optional[Image.Image]:
        if not product.image:
            logger.warning(f"No image set for {product.name!r}, drawing placeholder")
            return None
        try:
            return self.image_loader.load(product.image)
        except ImageLoadError as e:
            logger.warning(f"Image for {product.name!r} unavailable ({e}), drawing placeholder")
            return None

    def _paint_image_section(self, surface: Image.Image, frame: CardFrame, strategy: ThemeStrategy) -> None:
        left, top, right, bottom = frame.image_box
        image = self._load_image(frame.product)

        if image is None:
            _fill_box(surface, (left, top, right, bottom), PLACEHOLDER_FILL)
            _draw(surface).text(
                ((left + right) / 2, (top + bottom) / 2),
                PLACEHOLDER_TEXT,
                font=strategy.font(frame, PLACEHOLDER_FONT_SIZE),
                fill=to_rgba(PLACEHOLDER_TEXT_COLOR),
                anchor="mm",
            )
            return

        _fill_box(surface, (left, top, right, bottom), frame.options.image_bg_color)
        box_width, box_height = right - left, bottom - top
        fitted = ImageOps.contain(image, (box_width, box_height), Image.Resampling.LANCZOS)
        x = left + (box_width - fitted.width) // 2
        y = top + (box_height - fitted.height) // 2
        surface.paste(fitted, (x, y), fitted)


_default_compositor: Optional[CardCompositor] = None


def get_compositor() -> CardCompositor:
    """Process-wide compositor sharing one font cache."""
    global _default_compositor
    if _default_compositor is None:
        _default_compositor = CardCompositor()
    return _default_compositor


def render_classic(
    product: ProductRenderData,
    options: RenderOptions,
    watermark: Optional[WatermarkConfig] = None,
) -> Image.Image:
    return get_compositor().render_classic(product, options, watermark)


def render_glass(
    product: ProductRenderData,
    options: RenderOptions,
    watermark: Optional[WatermarkConfig] = None,
) -> Image.Image:
    return get_compositor().render_glass(product, options, watermark)
