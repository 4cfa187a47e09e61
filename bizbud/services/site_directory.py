"""
Site directory: enumerate tenants and build summary records.

One unreadable tenant never hides the others; it shows up as a stub
``{siteId, error}`` row instead.
"""

from typing import Any, Dict, List

from ..models.site import (
    CONTENT_KEY_PATTERN,
    SiteSummary,
    content_key,
    settings_key,
    site_id_from_key,
)
from ..store.base import KeyValueStore
from ..utils.exceptions import StoreUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class SiteDirectory:
    """Lists every site known to the store"""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def site_ids(self) -> List[str]:
        """All siteIds with a content record, sorted ascending"""
        return sorted({site_id_from_key(k) for k in self.store.keys(CONTENT_KEY_PATTERN)})

    def site_exists(self, site_id: str) -> bool:
        return self.store.get(content_key(site_id)) is not None

    def summarize(self, site_id: str) -> SiteSummary:
        content = _as_dict(self.store.get(content_key(site_id)))
        settings = _as_dict(self.store.get(settings_key(site_id)))
        return SiteSummary(
            site_id=site_id,
            business_name=content.get("siteTitle") or site_id,
            business_type=content.get("businessType") or "",
            email=settings.get("adminEmail") or "",
            created_at=settings.get("createdAt") or "",
            last_updated=content.get("lastUpdated") or settings.get("createdAt") or "",
        )

    def list_sites(self) -> List[SiteSummary]:
        """
        Summaries for every site, sorted by siteId.

        Raises StoreUnavailableError only if the key scan itself fails.
        """
        site_ids = self.site_ids()
        logger.info("Listing sites", count=len(site_ids))

        sites = []
        for site_id in site_ids:
            try:
                sites.append(self.summarize(site_id))
            except (StoreUnavailableError, ValueError, TypeError) as e:
                logger.error("Failed to load site data", site_id=site_id, error=str(e))
                sites.append(SiteSummary(site_id=site_id, error="Failed to load site data"))
        return sites

    def find_sites_by_subscription(self, subscription_id: str) -> List[str]:
        """siteIds whose content or settings carry subscription_id"""
        matches = []
        for site_id in self.site_ids():
            content = _as_dict(self.store.get(content_key(site_id)))
            settings = _as_dict(self.store.get(settings_key(site_id)))
            if subscription_id in (content.get("subscriptionId"), settings.get("subscriptionId")):
                matches.append(site_id)
        return matches
