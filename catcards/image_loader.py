"""Product image acquisition: data URLs, http(s) URLs and filesystem paths."""

import base64
import io
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, ImageOps

from .config import settings
from .errors import ImageLoadError
from .utils import get_logger, image_fetch_retry

logger = get_logger(__name__)


class ImageLoader:
    """Resolves an image reference string to a decoded RGBA bitmap."""

    def __init__(
        self,
        media_dir: Optional[Path] = None,
        timeout_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.media_dir = media_dir if media_dir is not None else settings.media_dir
        self.timeout_s = timeout_s if timeout_s is not None else settings.image_load_timeout_s
        self._session = session or requests.Session()

    def load(self, reference: Optional[str]) -> Image.Image:
        """
        Load and decode an image.

        Args:
            reference: ``data:`` URL, ``http(s)://`` URL, or a path (absolute
                or relative to the media directory)

        Returns:
            The decoded image in RGBA mode, EXIF orientation applied

        Raises:
            ImageLoadError: If the reference is empty, unreachable or not an image
        """
        if not reference:
            raise ImageLoadError("Product image is not set")

        try:
            if reference.startswith("data:"):
                data = self._decode_data_url(reference)
            elif reference.startswith(("http://", "https://")):
                data = self._fetch(reference)
            else:
                data = self._resolve_path(reference).read_bytes()

            image = Image.open(io.BytesIO(data))
            image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageLoadError(f"Failed to load image: {reference[:100]}") from e

        logger.debug(f"Loaded image {image.width}x{image.height} from {reference[:50]}")
        return ImageOps.exif_transpose(image).convert("RGBA")

    def _decode_data_url(self, reference: str) -> bytes:
        header, sep, payload = reference.partition(",")
        if not sep:
            raise ValueError("Malformed data URL")
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return payload.encode("utf-8")

    @image_fetch_retry
    def _fetch(self, url: str) -> bytes:
        response = self._session.get(url, timeout=self.timeout_s)
        response.raise_for_status()
        return response.content

    def _resolve_path(self, reference: str) -> Path:
        path = Path(reference).expanduser()
        if not path.is_absolute():
            path = self.media_dir / path
        return path
