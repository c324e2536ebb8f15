"""
Cloudinary media store for event photos.
Uploads with automatic optimization and deletes media of abandoned submissions.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from app.config import settings
import logging
import asyncio
import re
from functools import partial
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True
)


async def _call_with_retries(action: str, call: Callable[[], Any], max_retries: int) -> Any:
    """Run a blocking Cloudinary call off the event loop with 1s, 2s, 4s backoff."""
    for attempt in range(1, max_retries + 1):
        try:
            return await asyncio.to_thread(call)
        except CloudinaryError as e:
            if attempt == max_retries:
                logger.error(f"Cloudinary {action} failed after {max_retries} attempts: {str(e)}")
                raise
            logger.warning(f"Cloudinary {action} error (attempt {attempt}/{max_retries}): {str(e)}")
            await asyncio.sleep(2 ** (attempt - 1))


async def upload_image(
    file: Any,
    folder: str = "events",
    public_id: Optional[str] = None,
    max_retries: int = 3
) -> Dict[str, Any]:
    """
    Upload an image to Cloudinary, retrying transient failures.

    Args:
        file: File path, file object or bytes
        folder: Cloudinary folder
        public_id: Optional custom public ID
        max_retries: Attempts before giving up

    Returns:
        dict: url, public_id, format, width, height, bytes

    Raises:
        CloudinaryError: If the upload fails after all retries
    """
    result = await _call_with_retries(
        "upload",
        partial(
            cloudinary.uploader.upload,
            file,
            folder=folder,
            public_id=public_id,
            fetch_format="auto",
            quality="auto",
            transformation=[{"width": 1920, "height": 1080, "crop": "limit"}],
        ),
        max_retries,
    )
    logger.info(f"Uploaded image to Cloudinary: {result['public_id']}")
    stored = {"url": result["secure_url"], "public_id": result["public_id"]}
    stored.update({key: result.get(key) for key in ("format", "width", "height", "bytes")})
    return stored


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """Delete an image from Cloudinary and invalidate CDN caches."""
    result = await _call_with_retries(
        f"delete of {public_id}",
        partial(cloudinary.uploader.destroy, public_id, invalidate=True, resource_type="image"),
        max_retries,
    )
    # "not found" means someone already removed it
    if result.get("result") in ("ok", "not found"):
        logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
    else:
        logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
    return result


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    Extract the public_id from a delivery URL such as
    https://res.cloudinary.com/{cloud}/image/upload/v{version}/{folder}/{name}.{ext}

    Raises:
        ValueError: If the URL is not a Cloudinary upload URL
    """
    match = re.search(r"/image/upload(?:/v\d+)?/(.+)$", cloudinary_url)
    if not match:
        raise ValueError(f"Invalid Cloudinary URL format: {cloudinary_url}")

    folder, _, filename = match.group(1).rpartition("/")
    name = filename.rsplit(".", 1)[0] if "." in filename else filename
    return f"{folder}/{name}" if folder else name


def validate_cloudinary_config() -> bool:
    """Return True when all Cloudinary credentials are set."""
    for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
        if not getattr(settings, name):
            logger.warning(f"{name} not configured")
            return False
    return True
