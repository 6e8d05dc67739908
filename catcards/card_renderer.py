"""Per-item render pipeline: job → compose → PNG → saved file + cache entry."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .compositor import CardCompositor
from .encoder import RenderedImageStore, encode, to_data_url
from .fields import enabled_field_configs
from .jobs import build_render_job, render_options_for, to_render_data
from .models import Catalogue, FieldConfig, Product, RenderJob, ThemeKind, WatermarkConfig
from .storage import JsonFileStore
from .errors import PerItemRenderError
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class RenderedCard:
    """A rendered product card on disk."""

    product_id: str
    catalogue_label: str
    image_path: Path
    width: int
    height: int
    size_bytes: int


class CardRenderer:
    """Renders (product, catalogue) pairs to PNG files using one theme."""

    def __init__(
        self,
        theme: Union[ThemeKind, str] = ThemeKind.CLASSIC,
        compositor: Optional[CardCompositor] = None,
        image_store: Optional[RenderedImageStore] = None,
        field_configs: Optional[list[FieldConfig]] = None,
        watermark: Optional[WatermarkConfig] = None,
        price_position: Optional[str] = None,
    ):
        self.theme = ThemeKind.parse(theme)
        self.compositor = compositor or CardCompositor()
        self.image_store = image_store or RenderedImageStore(JsonFileStore())
        self.field_configs = enabled_field_configs(field_configs)
        self.watermark = watermark if watermark is not None else WatermarkConfig.from_settings()
        self.price_position = price_position

    def _compose_png(self, job: RenderJob) -> tuple[bytes, tuple[int, int]]:
        data = to_render_data(job, self.field_configs)
        options = render_options_for(job, self.theme, self.price_position)
        surface = self.compositor.render(data, options, self.watermark, self.theme)
        return encode(surface), surface.size

    def render_job(self, job: RenderJob) -> RenderedCard:
        """
        Render, encode and save one job.

        Raises:
            PerItemRenderError: Wrapping whatever failed while composing,
                encoding or saving
        """
        try:
            png, (width, height) = self._compose_png(job)
            path = self.image_store.save(job.product.id, job.label, job.folder, png)
        except Exception as e:
            logger.error(f"Render failed for {job.product.name!r} ({job.label}): {e}")
            raise PerItemRenderError(job.product.name, job.label, e) from e

        logger.info(f"Rendered {job.product.name!r} for {job.label}: {path}")
        return RenderedCard(
            product_id=job.product.id,
            catalogue_label=job.label,
            image_path=path,
            width=width,
            height=height,
            size_bytes=len(png),
        )

    def render_item(self, product: Product, catalogue: Catalogue) -> RenderedCard:
        return self.render_job(build_render_job(product, catalogue))

    def get_rendered_image(self, product: Product, catalogue: Catalogue) -> Optional[str]:
        """Previously rendered card as a data URL, or None if never rendered."""
        return self.image_store.get(product.id, catalogue.label, catalogue.folder)

    def render_on_the_fly(self, product: Product, catalogue: Catalogue) -> Optional[str]:
        """Render without saving; returns a data URL, or None on any failure."""
        try:
            png, _ = self._compose_png(build_render_job(product, catalogue))
        except Exception as e:
            logger.error(f"On-the-fly render failed for {product.name!r} ({catalogue.label}): {e}")
            return None
        return to_data_url(png)
