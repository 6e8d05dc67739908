"""
Test Configuration
==================

Shared fixtures: isolated settings directories, fixture images on disk,
a compositor wired to them, and sample products.
"""

import pytest
from PIL import Image

from catcards.compositor import CardCompositor, FontBook
from catcards.config import settings
from catcards.image_loader import ImageLoader
from catcards.models import Catalogue, DynamicField, Product, ProductRenderData, RenderOptions
from catcards.storage import InMemoryStore

RED = (200, 30, 30)
GREEN = (30, 200, 30)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every settings directory at a per-test temp dir."""
    monkeypatch.setattr(settings, "output_dir", tmp_path / "output")
    monkeypatch.setattr(settings, "state_dir", tmp_path / "state")
    monkeypatch.setattr(settings, "media_dir", tmp_path / "media")
    monkeypatch.setattr(settings, "assets_dir", tmp_path / "assets")
    monkeypatch.setattr(settings, "fields_config_path", None)
    monkeypatch.setattr(settings, "catalogues_config_path", None)
    monkeypatch.setattr(settings, "watermark_enabled", False)
    return settings


@pytest.fixture
def media_dir(tmp_path):
    """Media directory with a wide and a tall solid-colour image and a broken file."""
    path = tmp_path / "media"
    path.mkdir(exist_ok=True)
    Image.new("RGB", (200, 100), RED).save(path / "wide.png")
    Image.new("RGB", (100, 200), GREEN).save(path / "tall.png")
    (path / "broken.png").write_bytes(b"definitely not a png")
    return path


@pytest.fixture
def compositor(media_dir):
    """Compositor loading images from the fixture media dir."""
    return CardCompositor(image_loader=ImageLoader(media_dir=media_dir), fonts=FontBook())


@pytest.fixture
def options():
    """Classic options at scale 1 so pixel coordinates equal logical ones."""
    return RenderOptions(
        width=330,
        scale=1,
        bg_color="#336699",
        image_bg_color="white",
        font_color="white",
        background_color="#ffffff",
        currency_symbol="₹",
    )


@pytest.fixture
def glass_options(options):
    options.width = 360
    return options


@pytest.fixture
def fields():
    return (
        DynamicField("field1", "Colour", "Red"),
        DynamicField("field2", "Package", "6", unit="pcs / set", units_enabled=True),
        DynamicField("field3", "Age Group", "2-4", unit="years", units_enabled=True),
    )


@pytest.fixture
def render_data(fields):
    """A fully populated card."""
    return ProductRenderData(
        name="Cotton Frock",
        subtitle="Summer",
        image="wide.png",
        fields=fields,
        price=150,
        price_unit="/ piece",
        badge="new",
    )


@pytest.fixture
def bare_data():
    """Name and image only: no subtitle, fields, price or badge."""
    return ProductRenderData(name="Frock", image="wide.png")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def master():
    return Catalogue("cat1", "Master", "price1", "price1Unit", "wholesaleStock", "Master")


@pytest.fixture
def resell():
    return Catalogue("cat2", "Resell", "price2")


@pytest.fixture
def product(media_dir):
    """A catalogue-app product record as the app stores it."""
    return Product.from_dict({
        "id": "42",
        "name": "Cotton Frock",
        "subtitle": "Summer",
        "image": str(media_dir / "wide.png"),
        "field1": "Red",
        "field2": "6",
        "field2Unit": "pcs / dozen",
        "price1": 150,
        "price1Unit": "/ piece",
        "wholesaleStock": True,
        "price2": 220,
        "catalogueData": {"cat2": {"price2Unit": "/ set"}},
    })
