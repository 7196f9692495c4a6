"""Avatar image normalization (Pillow).

Uploaded avatars are re-encoded to a fixed-size PNG so the API always serves
one format and never stores client bytes verbatim.
"""

import io
import logging
from typing import Protocol, Tuple

from PIL import Image, UnidentifiedImageError

from taskmanager.models.constants import AVATAR_MAX_PIXELS, AVATAR_SIZE_PX

logger = logging.getLogger(__name__)


class ImageProcessingError(ValueError):
    """The uploaded bytes are not a decodable image."""


class ImageProcessor(Protocol):
    """Normalizes raw image bytes into the stored avatar format."""

    def normalize_avatar(self, data: bytes) -> bytes:
        ...


class PillowImageProcessor:
    """Resizes to a fixed square and re-encodes as PNG."""

    def __init__(self, size: Tuple[int, int] = AVATAR_SIZE_PX, max_pixels: int = AVATAR_MAX_PIXELS):
        self.size = size
        self.max_pixels = max_pixels

    def normalize_avatar(self, data: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                if width * height > self.max_pixels:
                    raise ImageProcessingError(f"Image is too large ({width}x{height} pixels)")
                img.load()
                if img.mode not in ("RGB", "RGBA"):
                    img = img.convert("RGBA")
                resized = img.resize(self.size)
        except Image.DecompressionBombError as e:
            raise ImageProcessingError("Image is too large") from e
        except (UnidentifiedImageError, OSError) as e:
            raise ImageProcessingError("File is not a valid image") from e

        out = io.BytesIO()
        resized.save(out, format="PNG")
        logger.debug(f"Normalized avatar: {len(data)} bytes in, {out.tell()} bytes out")
        return out.getvalue()


def get_image_processor() -> ImageProcessor:
    """ImageProcessor dependency (override in tests via app.dependency_overrides)."""
    return PillowImageProcessor()
