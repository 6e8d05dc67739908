"""Product-card rendering engine and batch orchestrator for catalogue sharing."""

from .card_renderer import CardRenderer, RenderedCard
from .compositor import CardCompositor, render_classic, render_glass
from .layout import canvas_size, compute_card_height, compute_layout
from .models import (
    Catalogue,
    DynamicField,
    FieldConfig,
    Product,
    ProductRenderData,
    RenderOptions,
    ThemeKind,
    WatermarkConfig,
)
from .orchestrator import BatchRenderOrchestrator, CallbackObserver, QueueObserver, RenderObserver

__all__ = [
    "BatchRenderOrchestrator",
    "CallbackObserver",
    "CardCompositor",
    "CardRenderer",
    "Catalogue",
    "DynamicField",
    "FieldConfig",
    "Product",
    "ProductRenderData",
    "QueueObserver",
    "RenderedCard",
    "RenderObserver",
    "RenderOptions",
    "ThemeKind",
    "WatermarkConfig",
    "canvas_size",
    "compute_card_height",
    "compute_layout",
    "render_classic",
    "render_glass",
]
