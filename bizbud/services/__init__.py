"""Site services"""

from .billing_service import BillingService
from .content_service import ContentService
from .media_service import MediaHost, MediaService
from .site_directory import SiteDirectory
from .site_lifecycle import SiteLifecycleManager

__all__ = [
    "BillingService",
    "ContentService",
    "MediaHost",
    "MediaService",
    "SiteDirectory",
    "SiteLifecycleManager",
]
