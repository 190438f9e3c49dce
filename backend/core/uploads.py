# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Image upload adapter: raw bytes + content type in, durable HTTPS URL out.

Uploads are not best-effort.  Any failure, including the timeout, raises
``UploadFailed`` and the caller aborts whatever it was creating.

The Cloudinary SDK is blocking, so the call runs in the threadpool and is
additionally bounded by ``asyncio.wait_for``.
"""

import asyncio
import base64
from typing import Optional, Protocol

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from core.config import Settings, settings
from core.errors import UploadFailed
from core.logger import logger

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}


class ImageUploader(Protocol):
    async def upload(self, data: bytes, mime_type: str, folder: str = "uploads") -> str: ...


class CloudinaryUploader:
    def __init__(self, cfg: Settings):
        self._cfg = cfg
        self._timeout = cfg.upload_timeout_seconds
        if cfg.cloudinary_configured:
            cloudinary.config(
                cloud_name=cfg.cloudinary_cloud_name,
                api_key=cfg.cloudinary_api_key,
                api_secret=cfg.cloudinary_api_secret,
                secure=True,  # Always use HTTPS
            )

    async def upload(self, data: bytes, mime_type: str, folder: str = "uploads") -> str:
        if not self._cfg.cloudinary_configured:
            raise UploadFailed("Image storage is not configured")
        if not data:
            raise UploadFailed("No file provided or invalid file format")
        if mime_type not in ALLOWED_IMAGE_TYPES:
            raise UploadFailed(f"Unsupported image type: {mime_type or 'unknown'}")

        data_uri = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        try:
            result = await asyncio.wait_for(
                run_in_threadpool(self._upload_blocking, data_uri, folder),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.error("image upload timed out after %.0fs", self._timeout)
            raise UploadFailed(
                "Image upload timed out. Please try with a smaller image or check your network connection."
            )
        except Exception as exc:
            logger.error("image upload failed: %s", exc)
            raise UploadFailed(cause=str(exc)) from exc

        url = (result or {}).get("secure_url")
        if not url:
            raise UploadFailed("Failed to get secure URL from image storage")
        return url

    def _upload_blocking(self, data_uri: str, folder: str) -> dict:
        return cloudinary.uploader.upload(
            data_uri,
            folder=folder,
            resource_type="image",
            allowed_formats=["jpg", "jpeg", "png", "gif"],
            transformation=[
                {"width": 500, "height": 500, "crop": "fill"},
                {"quality": "auto:good", "fetch_format": "auto"},
            ],
            timeout=self._timeout,
            use_filename=True,
            unique_filename=True,
            overwrite=True,
        )


_uploader: Optional[CloudinaryUploader] = None


def get_uploader() -> ImageUploader:
    """FastAPI dependency; tests replace it through ``app.dependency_overrides``."""
    global _uploader
    if _uploader is None:
        _uploader = CloudinaryUploader(settings)
    return _uploader
