"""
Media handling for console forms.
Holds picked files as scoped attachments and uploads photo-event images either
to Cloudinary or to the CMS API's own upload endpoint.
"""
from dataclasses import dataclass
from typing import Optional, Tuple
import asyncio
import base64
import logging
import tempfile

import httpx
from fastapi import Depends

from app.api_client import get_http_client
from app.config import settings
from app.services.cloudinary_service import (
    delete_image,
    extract_public_id_from_url,
    upload_image,
    validate_cloudinary_config,
)
from app.services.resource_client import RequestFailed
from app.utils.image_converter import convert_to_webp

logger = logging.getLogger(__name__)


class MediaRejected(ValueError):
    """A picked file cannot be accepted (wrong type or too large)."""


class Attachment:
    """
    A file picked in a form, held until it is submitted or discarded.
    Content spools to disk past SPOOL_MAX_BYTES; release() frees it.
    """
    SPOOL_MAX_BYTES = 1024 * 1024

    def __init__(self, filename: str, content: bytes, content_type: str = "application/octet-stream"):
        self.filename = filename or "upload"
        self.content_type = content_type or "application/octet-stream"
        self.size = len(content)
        self._file = tempfile.SpooledTemporaryFile(max_size=self.SPOOL_MAX_BYTES)
        self._file.write(content)

    @property
    def released(self) -> bool:
        return self._file is None

    def read(self) -> bytes:
        if self._file is None:
            raise ValueError(f"Attachment {self.filename} has been released")
        self._file.seek(0)
        return self._file.read()

    @property
    def preview_url(self) -> str:
        """Data URI for showing the picked file before it is uploaded."""
        encoded = base64.b64encode(self.read()).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"

    def as_file(self, field_name: str) -> Tuple[str, Tuple[str, bytes, str]]:
        return field_name, (self.filename, self.read(), self.content_type)

    def release(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    def __repr__(self):
        state = "released" if self.released else f"{self.size} bytes"
        return f"<Attachment {self.filename!r} {self.content_type} {state}>"


def check_image(filename: str, content_type: Optional[str], size: int, max_mb: Optional[int] = None):
    """
    Accept only image files up to max_mb megabytes.

    Raises:
        MediaRejected: If the file is not an image or is too large
    """
    max_mb = max_mb if max_mb is not None else settings.MAX_UPLOAD_MB
    if not content_type or not content_type.startswith("image/"):
        raise MediaRejected(f"File '{filename}' is not a valid image file")
    if size > max_mb * 1024 * 1024:
        raise MediaRejected(f"File '{filename}' exceeds the {max_mb}MB upload limit")


@dataclass
class UploadedMedia:
    url: str
    public_id: Optional[str] = None


class ApiMediaUploader:
    """Uploads each file to the CMS API upload endpoint, which answers {"url": ...}."""

    def __init__(self, http: httpx.AsyncClient, path: Optional[str] = None):
        self.http = http
        self.path = path or settings.MEDIA_UPLOAD_PATH

    async def upload(self, attachment: Attachment) -> UploadedMedia:
        action = f"upload {attachment.filename}"
        try:
            response = await self.http.post(self.path, files=[attachment.as_file("file")])
        except httpx.HTTPError as e:
            raise RequestFailed(action, f"transport error: {type(e).__name__}") from e
        if not response.is_success:
            raise RequestFailed(action, f"HTTP {response.status_code}", response.status_code)
        try:
            url = response.json()["url"]
        except (ValueError, KeyError, TypeError) as e:
            raise RequestFailed(action, "upload response has no url") from e

        logger.info(f"Uploaded {attachment.filename} to {url}")
        return UploadedMedia(url=url)

    async def discard(self, media: UploadedMedia):
        # The upload endpoint has no delete counterpart
        logger.warning(f"Leaving orphaned upload on CMS API: {media.url}")


class CloudinaryMediaUploader:
    """Converts images to WebP when that shrinks them and uploads them to Cloudinary."""

    def __init__(self, folder: Optional[str] = None):
        self.folder = folder or settings.MEDIA_FOLDER

    async def upload(self, attachment: Attachment) -> UploadedMedia:
        content = attachment.read()
        converted, ok = await asyncio.to_thread(convert_to_webp, content)
        if ok and len(converted) < len(content):
            logger.info(
                f"Converted {attachment.filename} to WebP: "
                f"{len(content):,} bytes -> {len(converted):,} bytes"
            )
            content = converted
        elif not ok:
            logger.warning(f"WebP conversion failed for {attachment.filename}, uploading original format")

        result = await upload_image(content, folder=self.folder)
        return UploadedMedia(url=result["url"], public_id=result["public_id"])

    async def discard(self, media: UploadedMedia):
        public_id = media.public_id or extract_public_id_from_url(media.url)
        await delete_image(public_id)


def get_media_uploader(http: httpx.AsyncClient = Depends(get_http_client)):
    """
    FastAPI dependency selecting the uploader for settings.MEDIA_BACKEND.
    Returns None for "inline", where images travel inside the create request.
    """
    if settings.MEDIA_BACKEND == "cloudinary":
        if not validate_cloudinary_config():
            logger.warning("MEDIA_BACKEND is cloudinary but Cloudinary credentials are incomplete")
        return CloudinaryMediaUploader()
    if settings.MEDIA_BACKEND == "api":
        return ApiMediaUploader(http)
    return None
