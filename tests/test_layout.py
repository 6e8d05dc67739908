"""
Unit Tests for Card Layout
==========================

Height math, price presence rules and canvas sizing.
"""

import pytest

from catcards.layout import (
    canvas_size,
    compute_card_height,
    compute_layout,
    counted_fields,
    format_price,
    has_price,
)
from catcards.models import DynamicField, FieldConfig, ProductRenderData, ThemeKind

# 4 + 10 + 27 + 12 + 12 + 12 + 4
CLASSIC_BASE_DETAILS = 81
# 8 + 10 + 27 + 12 + 12 + 12 + 8
GLASS_BASE_DETAILS = 89
FIELD_LINE = 16 * 1.4 + 2


def _with_fields(count: int, **kwargs) -> ProductRenderData:
    fields = [DynamicField(f"field{i}", f"Field {i}", f"value {i}") for i in range(1, count + 1)]
    return ProductRenderData(name="Item", fields=fields, **kwargs)


class TestHasPrice:
    """Test which price values count as present."""

    @pytest.mark.parametrize("price", ["", None, 0, 0.0, "0", "0.00", "  "])
    def test_empty_and_zero_prices_are_absent(self, price):
        """Test empty and zero-like prices produce no price bar."""
        assert has_price(price) is False

    @pytest.mark.parametrize("price", [150, "150", 9.5, "On request"])
    def test_real_prices_are_present(self, price):
        """Test numbers and free text count as a price."""
        assert has_price(price) is True


class TestFormatPrice:
    """Test price label formatting."""

    def test_symbol_amount_and_unit(self):
        """Test the full label."""
        assert format_price(150, "/ piece", "₹") == "₹150 / piece"

    @pytest.mark.parametrize("unit", ["", None, "None", "  "])
    def test_missing_unit_is_dropped(self, unit):
        """Test empty or literal None units are omitted."""
        assert format_price(150, unit, "$") == "$150"

    def test_integral_float_prints_as_int(self):
        """Test 150.0 is shown as 150."""
        assert format_price(150.0, "", "₹") == "₹150"

    def test_fractional_price_kept(self):
        """Test fractional prices are shown as given."""
        assert format_price("99.50", "", "₹") == "₹99.50"


class TestComputeLayout:
    """Test section heights for both themes."""

    def test_classic_minimal_card(self):
        """Test a card with no subtitle, fields or price."""
        layout = compute_layout(ProductRenderData(name="Item"), ThemeKind.CLASSIC)

        assert layout.width == 330
        assert layout.image_height == 330
        assert layout.details_height == CLASSIC_BASE_DETAILS
        assert layout.price_bar_height == 0
        assert layout.bottom_margin == 0
        assert layout.total_height == 330 + CLASSIC_BASE_DETAILS

    def test_glass_minimal_card(self):
        """Test glass uses its own width, padding and bottom margin."""
        layout = compute_layout(ProductRenderData(name="Item"), ThemeKind.GLASS)

        assert layout.width == 360
        assert layout.details_height == GLASS_BASE_DETAILS
        assert layout.total_height == 360 + GLASS_BASE_DETAILS + 24

    def test_subtitle_adds_its_line(self):
        """Test subtitle adds font size plus spacing."""
        base = compute_card_height(ProductRenderData(name="Item"))
        with_subtitle = compute_card_height(ProductRenderData(name="Item", subtitle="Sub"))

        assert with_subtitle - base == 17 + 10

    @pytest.mark.parametrize("theme, bar", [(ThemeKind.CLASSIC, 28), (ThemeKind.GLASS, 40)])
    def test_price_bar_only_with_price(self, theme, bar):
        """Test the price bar height is added only for a real price."""
        without = compute_layout(ProductRenderData(name="Item", price="0"), theme)
        with_price = compute_layout(ProductRenderData(name="Item", price=150), theme)

        assert without.price_bar_height == 0
        assert with_price.price_bar_height == bar
        assert with_price.total_height - without.total_height == bar
        assert with_price.details_body_height == without.details_height

    def test_crop_ratio_sets_image_height(self):
        """Test image height is width divided by the crop ratio."""
        layout = compute_layout(ProductRenderData(name="Item", crop_aspect_ratio=2), ThemeKind.CLASSIC)
        assert layout.image_height == 165

    @pytest.mark.parametrize("ratio", [0, -1, None, "bad"])
    def test_invalid_crop_ratio_defaults_to_square(self, ratio):
        """Test non-positive or unparseable ratios fall back to 1."""
        layout = compute_layout(ProductRenderData(name="Item", crop_aspect_ratio=ratio))
        assert layout.image_height == layout.width

    def test_explicit_width_overrides_theme_default(self):
        """Test the width argument replaces the theme base width."""
        layout = compute_layout(ProductRenderData(name="Item"), ThemeKind.CLASSIC, width=400)
        assert layout.width == 400
        assert layout.image_height == 400

    @pytest.mark.parametrize("theme", [ThemeKind.CLASSIC, ThemeKind.GLASS])
    def test_height_monotonic_in_field_count(self, theme):
        """Test each rendered field adds exactly one line."""
        heights = [compute_card_height(_with_fields(n), theme) for n in range(6)]

        for previous, current in zip(heights, heights[1:]):
            assert current - previous == pytest.approx(FIELD_LINE)

    def test_empty_and_hidden_fields_not_counted(self):
        """Test empty values and visible=False fields take no line."""
        product = ProductRenderData(
            name="Item",
            fields=[
                DynamicField("field1", "Colour", "Red"),
                DynamicField("field2", "Package", ""),
                DynamicField("field3", "Age", "   "),
                DynamicField("field4", "Size", "XL", visible=False),
                DynamicField("field5", "Brand", "Acme", visible=None),
            ],
        )
        layout = compute_layout(product)

        assert layout.field_count == 2
        assert [f.key for f in counted_fields(product)] == ["field1", "field5"]

    def test_enabled_fields_restrict_counting(self):
        """Test only enabled field keys are counted."""
        product = _with_fields(4)

        by_key = compute_layout(product, enabled_fields=["field1", "field3"])
        by_config = compute_layout(product, enabled_fields=[FieldConfig("field2", "Field 2")])

        assert by_key.field_count == 2
        assert by_config.field_count == 1

    def test_layout_is_deterministic(self):
        """Test repeated calls give identical layouts."""
        product = _with_fields(3, subtitle="Sub", price=10)
        assert compute_layout(product, ThemeKind.GLASS) == compute_layout(product, ThemeKind.GLASS)


class TestCanvasSize:
    """Test logical to pixel size conversion."""

    def test_scales_and_rounds(self):
        """Test dimensions are scaled and rounded to whole pixels."""
        assert canvas_size(330, 100.4, 3) == (990, 301)
        assert canvas_size(330, 411, 1) == (330, 411)

    def test_never_zero(self):
        """Test degenerate sizes clamp to one pixel."""
        assert canvas_size(0, 0.1, 1) == (1, 1)
