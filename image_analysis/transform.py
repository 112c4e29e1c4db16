"""ImageTransformer — shrink and recompress images before inference."""
import asyncio
import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from image_analysis.constants import (
    RESIZE_JPEG_QUALITY,
    RESIZE_MAX_SIZE,
    RESIZE_OUTPUT_CONTENT_TYPE,
    RESIZE_OUTPUT_FORMAT,
)
from image_analysis.errors import TransformError

logger = logging.getLogger(__name__)


def shrink_to_jpeg(
    data: bytes,
    max_size: tuple[int, int] = RESIZE_MAX_SIZE,
    quality: int = RESIZE_JPEG_QUALITY,
) -> bytes:
    """Fit ``data`` inside ``max_size`` (never upscaling) and re-encode as JPEG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            image = ImageOps.exif_transpose(img) or img
            image.thumbnail(max_size, Image.Resampling.LANCZOS)
            match image.mode:
                case "RGB":
                    pass
                case _:
                    image = image.convert("RGB")
            buf = io.BytesIO()
            image.save(buf, format=RESIZE_OUTPUT_FORMAT, quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise TransformError(str(exc) or type(exc).__name__) from exc

    logger.debug("Resized image to %dx%d (%d bytes)", *image.size, buf.tell())
    return buf.getvalue()


class ImageTransformer:

    content_type = RESIZE_OUTPUT_CONTENT_TYPE

    def __init__(
        self,
        max_size: tuple[int, int] = RESIZE_MAX_SIZE,
        quality: int = RESIZE_JPEG_QUALITY,
    ) -> None:
        self._max_size = max_size
        self._quality = quality

    async def transform(self, data: bytes) -> bytes:
        # Pillow is CPU-bound; keep the event loop free for other calls.
        return await asyncio.to_thread(shrink_to_jpeg, data, self._max_size, self._quality)
