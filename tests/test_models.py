"""
Unit Tests for Records
======================
"""

from datetime import datetime, timedelta

from catcards.config import settings
from catcards.models import (
    Catalogue,
    DynamicField,
    Product,
    RenderingState,
    RenderOptions,
    RenderStats,
    ThemeKind,
    WatermarkConfig,
)


class TestThemeKind:
    """Test theme parsing."""

    def test_parse(self):
        assert ThemeKind.parse("GLASS") is ThemeKind.GLASS
        assert ThemeKind.parse(ThemeKind.GLASS) is ThemeKind.GLASS
        assert ThemeKind.parse("neon") is ThemeKind.CLASSIC
        assert ThemeKind.parse(None) is ThemeKind.CLASSIC

    def test_base_widths(self):
        assert ThemeKind.CLASSIC.base_width == 330
        assert ThemeKind.GLASS.base_width == 360


class TestDynamicField:
    """Test field display rules."""

    def test_unit_shown_only_when_enabled(self):
        assert DynamicField("f", "Package", "6", "pcs / set", units_enabled=True).display_value == "6 pcs / set"
        assert DynamicField("f", "Package", "6", "pcs / set", units_enabled=False).display_value == "6"


class TestRenderOptions:
    """Test option defaults."""

    def test_for_theme_defaults(self):
        options = RenderOptions.for_theme(ThemeKind.CLASSIC)

        assert (options.width, options.scale) == (330, 3)
        assert options.bg_color == "#add8e6"
        assert options.currency_symbol == "₹"
        assert options.price_position == "top"

    def test_none_overrides_ignored(self):
        assert RenderOptions.for_theme(ThemeKind.GLASS, bg_color=None, scale=2).bg_color == "#add8e6"

    def test_direct_construction_uses_configured_currency(self, monkeypatch):
        """Test options built without a symbol still show the configured currency."""
        assert RenderOptions(width=330).currency_symbol == "₹"

        monkeypatch.setattr(settings, "currency_symbol", "$")
        assert RenderOptions(width=330).currency_symbol == "$"


class TestWatermarkConfig:
    def test_active_needs_text(self):
        assert WatermarkConfig(enabled=True, text="x").is_active
        assert not WatermarkConfig(enabled=True, text="").is_active
        assert not WatermarkConfig(enabled=False, text="x").is_active


class TestProduct:
    """Test the app record mapping."""

    def test_from_dict_maps_camel_case(self):
        product = Product.from_dict({
            "id": 7,
            "name": "Frock",
            "imagePath": "/data/7.jpg",
            "cropAspectRatio": 0.8,
            "bgColor": "#000",
            "field1": "Red",
            "catalogueData": {"cat1": {"price1": 5}},
        })

        assert product.id == "7"
        assert product.image_ref == "/data/7.jpg"
        assert product.crop_aspect_ratio == 0.8
        assert product.bg_color == "#000"
        assert product.values == {"field1": "Red"}
        assert product.values_for(Catalogue("cat1", "Master"))["price1"] == 5

    def test_has_image(self):
        assert not Product(id="1", name="A").has_image
        assert Product(id="1", name="A", image_path="x.png").has_image


class TestRenderingState:
    """Test state serialisation and staleness."""

    def test_round_trip(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        state = RenderingState(
            is_rendering=True,
            current_product_index=3,
            total_products=10,
            total_catalogues=2,
            completed_items=6,
            stats=RenderStats(5, 1, ["B"]),
            checkpoint=RenderStats(5, 1, ["B"]),
            started_at=now,
            updated_at=now,
        )
        assert RenderingState.from_dict(state.to_dict()) == state

    def test_percentage(self):
        state = RenderingState(total_products=4, total_catalogues=2, completed_items=2)
        assert state.percentage == 25

    def test_staleness(self):
        fresh = RenderingState(updated_at=datetime.now() - timedelta(hours=1))
        old = RenderingState(updated_at=datetime.now() - timedelta(hours=30))

        assert not fresh.is_stale(24)
        assert old.is_stale(24)
        assert RenderingState().is_stale(24)
