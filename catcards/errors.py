"""Exception types raised by the rendering engine and batch orchestrator."""


class CatCardsError(Exception):
    """Base class for all catcards errors."""


class ImageLoadError(CatCardsError):
    """A product image reference could not be fetched or decoded.

    Recovered inside the compositor, which paints a placeholder instead.
    """


class PerItemRenderError(CatCardsError):
    """Rendering one (product, catalogue) item failed.

    Recovered by the orchestrator, which counts the failure and moves on.
    """

    def __init__(self, product_name: str, catalogue_label: str, cause: Exception):
        self.product_name = product_name
        self.catalogue_label = catalogue_label
        self.cause = cause
        super().__init__(f"Failed to render {product_name!r} for {catalogue_label!r}: {cause}")


class BatchFatalError(CatCardsError):
    """A batch cannot start or continue (e.g. state persistence is unavailable)."""
