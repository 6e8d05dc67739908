"""PNG encoding, output naming and the rendered-image cache."""

import base64
import io
import json
from pathlib import Path
from typing import Optional

from PIL import Image

from .config import settings
from .storage import KeyValueStore
from .utils import get_logger

logger = get_logger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


def encode(surface: Image.Image) -> bytes:
    """Encode a card surface as PNG.

    No metadata and no optimizer pass, so identical surfaces always give
    byte-identical output.
    """
    if surface.mode != "RGB":
        surface = surface.convert("RGB")
    buffer = io.BytesIO()
    surface.save(buffer, format="PNG", optimize=False, compress_level=6)
    return buffer.getvalue()


def to_base64(png: bytes) -> str:
    return base64.b64encode(png).decode("ascii")


def to_data_url(png: bytes) -> str:
    return DATA_URL_PREFIX + to_base64(png)


def output_filename(product_id: str, catalogue_label: str) -> str:
    return f"product_{product_id}_{catalogue_label}.png"


def cache_key(catalogue_label: str, product_id: str) -> str:
    return f"rendered::{catalogue_label}::{product_id}"


class RenderedImageStore:
    """Writes rendered PNGs to ``output_dir/<folder>/`` and caches them by key."""

    def __init__(self, store: KeyValueStore, output_dir: Optional[Path] = None):
        self.store = store
        self.output_dir = output_dir or settings.output_dir

    def path_for(self, product_id: str, catalogue_label: str, folder: Optional[str] = None) -> Path:
        return self.output_dir / (folder or catalogue_label) / output_filename(product_id, catalogue_label)

    def save(self, product_id: str, catalogue_label: str, folder: Optional[str], png: bytes) -> Path:
        """Persist ``png`` to disk and to the cache; returns the file path."""
        path = self.path_for(product_id, catalogue_label, folder)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png)
        self.store.set(cache_key(catalogue_label, product_id), json.dumps({"base64": to_base64(png)}))
        logger.debug(f"Saved {path}")
        return path

    def get(self, product_id: str, catalogue_label: str, folder: Optional[str] = None) -> Optional[str]:
        """Data URL of a previously rendered card: cache first, then file, else None."""
        cached = self._cached_base64(catalogue_label, product_id)
        if cached:
            return DATA_URL_PREFIX + cached

        path = self.path_for(product_id, catalogue_label, folder)
        if path.exists():
            try:
                return to_data_url(path.read_bytes())
            except OSError as e:
                logger.warning(f"Failed to read rendered image {path}: {e}")
        return None

    def _cached_base64(self, catalogue_label: str, product_id: str) -> Optional[str]:
        raw = self.store.get(cache_key(catalogue_label, product_id))
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable cache entry for {product_id} ({catalogue_label})")
            return None
        return entry.get("base64") if isinstance(entry, dict) else None

    def remove(self, product_id: str, catalogue_label: str, folder: Optional[str] = None) -> None:
        self.store.remove(cache_key(catalogue_label, product_id))
        self.path_for(product_id, catalogue_label, folder).unlink(missing_ok=True)
