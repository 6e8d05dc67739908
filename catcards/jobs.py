"""Expansion of products into per-catalogue render jobs and render inputs."""

from typing import Any, Iterable, Optional, Union

from .config import settings
from .layout import has_price
from .models import (
    Catalogue,
    DynamicField,
    FieldConfig,
    Product,
    ProductRenderData,
    RenderJob,
    RenderOptions,
    ThemeKind,
)

_FALSE_STRINGS = {"false", "no", "0", "off"}


def _is_explicitly_false(value: Any) -> bool:
    if value is False:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _FALSE_STRINGS
    return False


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_render_job(product: Product, catalogue: Catalogue) -> RenderJob:
    """Resolve ``product`` against ``catalogue``'s price, unit and stock columns."""
    values = product.values_for(catalogue)
    price = values.get(catalogue.price_field)
    price_unit = _as_text(values.get(catalogue.price_unit_field)).strip()
    if has_price(price) and not price_unit:
        price_unit = settings.default_price_unit
    in_stock = not _is_explicitly_false(values.get(catalogue.stock_field))
    return RenderJob(
        product=product,
        catalogue=catalogue,
        values=values,
        price=price,
        price_unit=price_unit,
        in_stock=in_stock,
    )


def build_jobs(products: Iterable[Product], catalogues: Iterable[Catalogue]) -> list[RenderJob]:
    catalogues = list(catalogues)
    return [build_render_job(p, c) for p in products for c in catalogues]


def build_fields(values: dict[str, Any], field_configs: Iterable[FieldConfig]) -> tuple[DynamicField, ...]:
    """Dynamic fields for every enabled config, in configured order."""
    fields = []
    for config in field_configs:
        if not config.enabled:
            continue
        unit = ""
        if config.units_enabled:
            unit = _as_text(values.get(config.unit_key)).strip() or (config.default_unit or "")
        visible = values.get(config.visibility_key, config.visible)
        fields.append(
            DynamicField(
                key=config.key,
                label=config.label,
                value=_as_text(values.get(config.key)),
                unit=unit,
                units_enabled=config.units_enabled,
                visible=not _is_explicitly_false(visible),
            )
        )
    return tuple(fields)


def to_render_data(job: RenderJob, field_configs: Iterable[FieldConfig]) -> ProductRenderData:
    product = job.product
    badge = product.badge
    if not badge and not job.in_stock:
        badge = settings.out_of_stock_badge
    return ProductRenderData(
        name=product.name,
        subtitle=product.subtitle,
        image=product.image_ref,
        fields=build_fields(job.values, field_configs),
        price=job.price,
        price_unit=job.price_unit,
        badge=badge,
        crop_aspect_ratio=product.crop_aspect_ratio,
    )


def render_options_for(
    job: RenderJob,
    theme: Union[ThemeKind, str] = ThemeKind.CLASSIC,
    price_position: Optional[str] = None,
    **overrides: Any,
) -> RenderOptions:
    """Theme defaults, then the product's own colours, then explicit overrides."""
    product = job.product
    values = {
        "bg_color": product.bg_color,
        "image_bg_color": product.image_bg_color,
        "font_color": product.font_color,
        "price_position": price_position,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return RenderOptions.for_theme(ThemeKind.parse(theme), **values)
