"""
Per-site content documents (``site:{siteId}:client``).

Reads fall back to a bundled snapshot when the store is unreachable or the
site has no content, so published sites keep rendering. Writes never fall
back.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.site import PAYMENT_TIERS, content_key, utc_now_iso
from ..store.base import KeyValueStore
from ..utils.exceptions import InvalidInputError, NotFoundError, StoreUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FALLBACK_PATH = Path(__file__).resolve().parent.parent / "data" / "client.json"

# Written only by billing flows; a content save keeps the stored values
BILLING_FIELDS = ("paymentTier", "subscriptionId", "stripeCustomerId")


class ContentService:
    """Reads and writes site content"""

    def __init__(self, store: KeyValueStore, fallback_path: Optional[Path] = DEFAULT_FALLBACK_PATH):
        self.store = store
        self.fallback_path = Path(fallback_path) if fallback_path else None

    def _load_fallback(self) -> Optional[Dict[str, Any]]:
        if not self.fallback_path or not self.fallback_path.exists():
            return None
        try:
            with open(self.fallback_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Fallback content unreadable", path=str(self.fallback_path), error=str(e))
            return None

    def get_client_data(self, site_id: str) -> Dict[str, Any]:
        """
        Content for one site.

        Raises:
            NotFoundError: site has no content and no snapshot available
            StoreUnavailableError: store down and no snapshot available
        """
        try:
            content = self.store.get(content_key(site_id))
        except StoreUnavailableError:
            fallback = self._load_fallback()
            if fallback is None:
                raise
            logger.warning("Store unavailable, serving fallback content", site_id=site_id)
            return fallback

        if isinstance(content, dict):
            return content

        fallback = self._load_fallback()
        if fallback is None:
            raise NotFoundError("Site not found and fallback unavailable")
        logger.info("No content stored, serving fallback content", site_id=site_id)
        return fallback

    def save_client_data(self, site_id: str, client_data: Any) -> Dict[str, Any]:
        """Replace a site's content; billing fields are kept from the stored copy"""
        if not isinstance(client_data, dict) or not client_data:
            raise InvalidInputError("Client data is required")

        existing = self.store.get(content_key(site_id))
        if not isinstance(existing, dict):
            raise NotFoundError(f"Site {site_id} not found")

        document = {k: v for k, v in client_data.items() if k not in BILLING_FIELDS}
        for field in BILLING_FIELDS:
            if field in existing:
                document[field] = existing[field]
        document["lastUpdated"] = utc_now_iso()

        self.store.set(content_key(site_id), document)
        logger.info("Saved client data", site_id=site_id)
        return document

    def update_payment_tier(self, site_id: str, payment_tier: str) -> Dict[str, Any]:
        if payment_tier not in PAYMENT_TIERS:
            raise InvalidInputError("Invalid payment tier")

        content = self.store.get(content_key(site_id))
        if not isinstance(content, dict):
            raise NotFoundError(f"Site {site_id} not found")

        content["paymentTier"] = payment_tier
        self.store.set(content_key(site_id), content)
        logger.info("Payment tier updated", site_id=site_id, payment_tier=payment_tier)
        return content
