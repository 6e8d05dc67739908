"""
Unit Tests for Render Jobs
==========================

Product x catalogue resolution into render inputs.
"""

import pytest

from catcards.jobs import build_fields, build_jobs, build_render_job, render_options_for, to_render_data
from catcards.models import DEFAULT_FIELDS, Catalogue, FieldConfig, Product, ThemeKind


class TestBuildRenderJob:
    """Test catalogue-specific value resolution."""

    def test_uses_catalogue_price_columns(self, product, master, resell):
        """Test each catalogue reads its own price and unit."""
        wholesale = build_render_job(product, master)
        retail = build_render_job(product, resell)

        assert (wholesale.price, wholesale.price_unit) == (150, "/ piece")
        assert (retail.price, retail.price_unit) == (220, "/ set")
        assert retail.folder == "Resell"

    def test_default_unit_only_with_price(self, master):
        """Test the configured unit fills in for priced products only."""
        priced = build_render_job(Product(id="1", name="A", values={"price1": 10}), master)
        unpriced = build_render_job(Product(id="2", name="B", values={"price1": ""}), master)

        assert priced.price_unit == "/ piece"
        assert unpriced.price_unit == ""

    def test_legacy_keys_are_fallbacks(self, master):
        """Test old-style keys feed the new field and price keys."""
        product = Product.from_dict({"id": "1", "name": "Old", "color": "Blue", "wholesale": 99, "field1": ""})
        job = build_render_job(product, master)

        assert job.price == 99
        assert job.values["field1"] == "Blue"

    def test_catalogue_data_overrides_values(self, master):
        """Test per-catalogue overrides win over the flat values."""
        product = Product.from_dict({
            "id": "1",
            "name": "A",
            "price1": 10,
            "catalogueData": {"cat1": {"price1": 12, "field1": "Green"}},
        })
        job = build_render_job(product, master)

        assert job.price == 12
        assert job.values["field1"] == "Green"

    @pytest.mark.parametrize("stock, in_stock", [(False, False), ("false", False), (True, True), (None, True)])
    def test_stock_flag(self, master, stock, in_stock):
        """Test only an explicit false marks a product out of stock."""
        product = Product(id="1", name="A", values={"wholesaleStock": stock})
        assert build_render_job(product, master).in_stock is in_stock

    def test_build_jobs_is_product_major(self, master, resell):
        """Test jobs iterate catalogues inside products."""
        products = [Product(id="1", name="A"), Product(id="2", name="B")]
        jobs = build_jobs(products, [master, resell])

        assert [(j.product.name, j.label) for j in jobs] == [
            ("A", "Master"), ("A", "Resell"), ("B", "Master"), ("B", "Resell"),
        ]


class TestBuildFields:
    """Test dynamic field construction from configuration."""

    def test_enabled_fields_in_order_with_units(self):
        """Test disabled configs are skipped and units resolved."""
        values = {"field1": "Red", "field2": 6, "field2Unit": "pcs / dozen", "field3": "2", "field4": "x"}
        fields = build_fields(values, DEFAULT_FIELDS)

        assert [f.key for f in fields] == ["field1", "field2", "field3"]
        assert fields[1].display_value == "6 pcs / dozen"
        assert fields[2].display_value == "2 months"

    def test_visibility_flag(self):
        """Test <key>Visible=false hides the field."""
        values = {"field1": "Red", "field1Visible": "false"}
        fields = build_fields(values, [FieldConfig("field1", "Colour")])

        assert fields[0].visible is False
        assert not fields[0].is_rendered

    def test_unit_none_literal_dropped(self):
        """Test a unit of 'None' is not displayed."""
        config = FieldConfig("field2", "Package", unit_options=["pcs / set"])
        fields = build_fields({"field2": "6", "field2Unit": "None"}, [config])

        assert fields[0].display_value == "6"


class TestToRenderData:
    """Test the immutable render snapshot."""

    def test_snapshot_fields(self, product, master):
        """Test name, image, price and fields are carried over."""
        data = to_render_data(build_render_job(product, master), DEFAULT_FIELDS)

        assert data.name == "Cotton Frock"
        assert data.image == product.image
        assert data.price == 150
        assert [f.display_value for f in data.rendered_fields] == ["Red", "6 pcs / dozen"]

    def test_out_of_stock_badge(self, master):
        """Test out-of-stock products get the configured badge."""
        product = Product(id="1", name="A", values={"wholesaleStock": False})
        assert to_render_data(build_render_job(product, master), []).badge == "Out of Stock"

    def test_own_badge_wins(self, master):
        """Test an explicit badge is kept even when out of stock."""
        product = Product(id="1", name="A", badge="Sale", values={"wholesaleStock": False})
        assert to_render_data(build_render_job(product, master), []).badge == "Sale"


class TestRenderOptionsFor:
    """Test option resolution."""

    def test_product_colours_override_defaults(self, master):
        """Test per-product colours replace the theme defaults."""
        product = Product(id="1", name="A", bg_color="#123456")
        options = render_options_for(build_render_job(product, master), "glass")

        assert options.width == ThemeKind.GLASS.base_width
        assert options.bg_color == "#123456"
        assert options.image_bg_color == "white"

    def test_explicit_overrides_win(self, master):
        """Test keyword overrides beat product colours."""
        product = Product(id="1", name="A", bg_color="#123456")
        options = render_options_for(build_render_job(product, master), price_position="bottom", bg_color="#000000")

        assert options.bg_color == "#000000"
        assert options.price_position == "bottom"
