"""
Per-site media library (``site:{siteId}:media``), newest first.

Uploads go to the media host under ``{folder}/{siteId}`` and are recorded
with an atomic LPUSH; deletes remove just their entry with LREM. Concurrent
uploads and deletes never lose each other.
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Optional

from ..models.site import MediaItem, media_key
from ..store.base import KeyValueStore
from ..utils.exceptions import InvalidInputError, NotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MediaHost(ABC):
    """Image CDN used for uploads"""

    @abstractmethod
    def upload(self, file: BinaryIO, folder: str, filename: Optional[str] = None) -> Dict[str, Any]:
        """Returns {url, publicId, width, height, format}; raises UploadFailedError"""

    @abstractmethod
    def destroy(self, public_id: str) -> None:
        """Raises DeleteFailedError"""


class MediaService:
    """Lists, uploads and deletes a site's images"""

    def __init__(self, store: KeyValueStore, host: MediaHost, folder: str = "bizbud"):
        self.store = store
        self.host = host
        self.folder = folder

    def list_media(self, site_id: str) -> List[Dict[str, Any]]:
        return [item for item in self.store.lrange(media_key(site_id), 0, -1) if isinstance(item, dict)]

    def upload(self, site_id: str, file: BinaryIO, filename: Optional[str] = None) -> MediaItem:
        result = self.host.upload(file, folder=f"{self.folder}/{site_id}", filename=filename)
        item = MediaItem(
            url=result["url"],
            public_id=result["publicId"],
            width=result.get("width"),
            height=result.get("height"),
            format=result.get("format"),
        )
        self.store.lpush(media_key(site_id), item.to_store())
        logger.info("Media uploaded", site_id=site_id, public_id=item.public_id)
        return item

    def delete(self, site_id: str, public_id: str) -> None:
        """
        Remove an image from the host and from the site's library.

        Only images recorded in this site's own library can be deleted.
        """
        if not public_id:
            raise InvalidInputError("Public ID is required")

        key = media_key(site_id)
        matches = [i for i in self.store.lrange(key, 0, -1) if isinstance(i, dict) and i.get("publicId") == public_id]
        if not matches:
            raise NotFoundError(f"Media {public_id} not found")

        self.host.destroy(public_id)

        # LREM drops only these entries; uploads that land meanwhile are kept
        for item in matches:
            self.store.lrem(key, item, count=0)
        logger.info("Media deleted", site_id=site_id, public_id=public_id)
