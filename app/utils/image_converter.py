"""
WebP conversion for event photos before they are sent to the media store.
"""
import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # 0-100
DEFAULT_WEBP_METHOD = 6    # 0-6, higher = smaller but slower
MAX_DIMENSION = 3840       # Longest side after conversion


def _normalise_mode(image: Image.Image) -> Image.Image:
    # WebP keeps alpha, so palette images go to RGBA and everything else to RGB
    if image.mode == "P":
        return image.convert("RGBA")
    if image.mode not in ("RGB", "RGBA", "LA"):
        return image.convert("RGB")
    return image


def _limit_size(image: Image.Image, max_dimension: int) -> Image.Image:
    width, height = image.size
    if max(width, height) <= max_dimension:
        return image
    scale = max_dimension / max(width, height)
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    logger.info(f"Downscaling image from {width}x{height} to {new_size[0]}x{new_size[1]}")
    return image.resize(new_size, Image.Resampling.LANCZOS)


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP.

    Args:
        image_bytes: Original file content
        quality: WebP quality; 100 switches to lossless
        method: WebP compression effort
        max_dimension: Longest side allowed (None to keep the size)

    Returns:
        Tuple[bytes, bool]: WebP bytes (or the original bytes) and whether the
        result is usable as-is (True also when the input already is WebP)
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        if image.format == "WEBP":
            return image_bytes, True

        image = _normalise_mode(image)
        if max_dimension:
            image = _limit_size(image, max_dimension)

        buffer = io.BytesIO()
        image.save(buffer, format="WEBP", quality=quality, method=method, lossless=quality == 100)
        return buffer.getvalue(), True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False

    except (OSError, ValueError) as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False
