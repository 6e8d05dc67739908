"""
Unit Tests for the Item Render Pipeline
=======================================
"""

import base64
import io

import pytest
from PIL import Image

from catcards.card_renderer import CardRenderer
from catcards.encoder import DATA_URL_PREFIX, RenderedImageStore
from catcards.errors import PerItemRenderError
from catcards.models import Product, WatermarkConfig


def _decode(data_url: str) -> Image.Image:
    assert data_url.startswith(DATA_URL_PREFIX)
    return Image.open(io.BytesIO(base64.b64decode(data_url[len(DATA_URL_PREFIX):])))


@pytest.fixture
def renderer(compositor, store, tmp_path):
    return CardRenderer(
        theme="classic",
        compositor=compositor,
        image_store=RenderedImageStore(store, tmp_path / "out"),
        watermark=WatermarkConfig(enabled=False),
    )


class BrokenCompositor:
    def render(self, *args, **kwargs):
        raise RuntimeError("boom")


class TestRenderItem:
    """Test rendering and saving one product for one catalogue."""

    def test_writes_png_and_cache(self, renderer, product, master, store, tmp_path):
        """Test the card lands on disk and in the cache."""
        card = renderer.render_item(product, master)

        assert card.image_path == tmp_path / "out" / "Master" / "product_42_Master.png"
        assert card.image_path.exists()
        assert Image.open(card.image_path).size == (card.width, card.height)
        assert card.width == 330 * 3
        assert store.get("rendered::Master::42") is not None

    def test_get_rendered_image_after_render(self, renderer, product, master):
        """Test a rendered card is retrievable without re-rendering."""
        assert renderer.get_rendered_image(product, master) is None

        renderer.render_item(product, master)

        assert _decode(renderer.get_rendered_image(product, master)).size[0] == 990

    def test_failure_wrapped_in_per_item_error(self, store, tmp_path, product, master):
        """Test any pipeline failure surfaces as PerItemRenderError."""
        renderer = CardRenderer(
            compositor=BrokenCompositor(),
            image_store=RenderedImageStore(store, tmp_path / "out"),
        )

        with pytest.raises(PerItemRenderError) as exc_info:
            renderer.render_item(product, master)

        assert exc_info.value.product_name == "Cotton Frock"
        assert exc_info.value.catalogue_label == "Master"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_missing_image_still_renders(self, renderer, master):
        """Test a product whose image is gone renders with a placeholder."""
        product = Product(id="9", name="Ghost", image="gone.png")
        card = renderer.render_item(product, master)

        assert card.image_path.exists()


class TestRenderOnTheFly:
    """Test unsaved renders."""

    def test_returns_data_url_without_saving(self, renderer, product, master, store):
        """Test the card is returned but not stored."""
        url = renderer.render_on_the_fly(product, master)

        assert _decode(url).format == "PNG"
        assert store.get("rendered::Master::42") is None

    def test_glass_theme_width(self, compositor, store, tmp_path, product, master):
        """Test the renderer's theme is applied."""
        renderer = CardRenderer(theme="glass", compositor=compositor, image_store=RenderedImageStore(store, tmp_path))
        assert _decode(renderer.render_on_the_fly(product, master)).size[0] == 360 * 3

    def test_never_raises(self, store, tmp_path, product, master):
        """Test failures return None."""
        renderer = CardRenderer(compositor=BrokenCompositor(), image_store=RenderedImageStore(store, tmp_path))
        assert renderer.render_on_the_fly(product, master) is None
