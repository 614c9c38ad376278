"""Cover image preparation.

List covers are shrunk to fit a square of ``CoverImage.MAX_DIMENSION``
pixels and re-encoded as JPEG, lowering the quality step by step until
the file fits ``CoverImage.MAX_SIZE_KB`` or the lowest quality is reached.
"""

from __future__ import annotations

import io
import logging
from pathlib import PurePath

from PIL import Image

from checkpointer.shared.constants import CoverImage
from checkpointer.shared.errors import InvalidParamsError

logger = logging.getLogger(__name__)


def _flatten(image: Image.Image) -> Image.Image:
    """RGB copy of ``image``; transparent areas become white."""
    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image.copy()


def compress_cover(
    data: bytes,
    *,
    max_size_kb: int = CoverImage.MAX_SIZE_KB,
    max_dimension: int = CoverImage.MAX_DIMENSION,
) -> bytes:
    """Re-encode an image as a small JPEG suitable for a list cover.

    Args:
        data: Encoded image in any format Pillow reads
        max_size_kb: Target size of the result
        max_dimension: Longest side of the result, in pixels

    Returns:
        JPEG bytes

    Raises:
        InvalidParamsError: If ``data`` is not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            image = _flatten(source)
    except OSError as e:
        raise InvalidParamsError(
            "Cover is not a readable image",
            field="image",
            operation="compress_cover",
            original_error=e,
        ) from e

    image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    quality = CoverImage.START_QUALITY
    while True:
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
        if buffer.tell() <= max_size_kb * 1024 or quality <= CoverImage.MIN_QUALITY:
            logger.debug(
                "Cover compressed to %dx%d, %d bytes at quality %d",
                image.width,
                image.height,
                buffer.tell(),
                quality,
            )
            return buffer.getvalue()
        quality -= CoverImage.QUALITY_STEP


def jpeg_filename(filename: str) -> str:
    """``filename`` with its extension replaced by ``.jpg``."""
    return str(PurePath(filename or "cover").with_suffix(".jpg"))


__all__ = ["compress_cover", "jpeg_filename"]
