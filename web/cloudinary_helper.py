"""Cloudinary media host for per-site image uploads"""

from typing import Any, BinaryIO, Dict, Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from bizbud.services.media_service import MediaHost
from bizbud.utils.config import MediaSettings
from bizbud.utils.exceptions import DeleteFailedError, IntegrationUnavailableError, UploadFailedError
from bizbud.utils.logger import get_logger

logger = get_logger(__name__)


def init_cloudinary(settings: MediaSettings) -> bool:
    """Initialize Cloudinary with credentials from settings"""
    if not settings.configured:
        return False

    cloudinary.config(
        cloud_name=settings.cloud_name,
        api_key=settings.api_key,
        api_secret=settings.api_secret,
        secure=True,  # Always use HTTPS
    )
    return True


class CloudinaryMediaHost(MediaHost):
    """Uploads into ``{folder}/{siteId}`` and deletes by public id"""

    def __init__(self, settings: MediaSettings):
        if not init_cloudinary(settings):
            raise IntegrationUnavailableError("Cloudinary credentials are not configured")
        self.settings = settings

    def upload(self, file: BinaryIO, folder: str, filename: Optional[str] = None) -> Dict[str, Any]:
        try:
            result = cloudinary.uploader.upload(
                file,
                folder=folder,
                resource_type="image",
                overwrite=False,
                invalidate=True,
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary upload failed", folder=folder, filename=filename, error=str(e))
            raise UploadFailedError(service="cloudinary") from e

        url = result.get("secure_url") or result.get("url")
        if not url or not result.get("public_id"):
            raise UploadFailedError("Cloudinary returned no URL", service="cloudinary")

        return {
            "url": url,
            "publicId": result["public_id"],
            "width": result.get("width"),
            "height": result.get("height"),
            "format": result.get("format"),
        }

    def destroy(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(public_id, invalidate=True)
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary delete failed", public_id=public_id, error=str(e))
            raise DeleteFailedError(service="cloudinary") from e

        outcome = (result or {}).get("result")
        # "not found" means it is already gone; the library entry is still removed
        if outcome not in ("ok", "not found"):
            logger.error("Cloudinary delete rejected", public_id=public_id, result=outcome)
            raise DeleteFailedError(service="cloudinary")
