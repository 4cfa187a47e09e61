"""Site data models"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SITE_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")

PAYMENT_TIERS = ("FREE", "PREMIUM")


def is_valid_site_id(site_id: Optional[str]) -> bool:
    """True if site_id is lowercase a-z, 0-9 and dashes"""
    return bool(site_id) and SITE_ID_PATTERN.match(site_id) is not None


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Key naming convention shared with the deployed sites
def content_key(site_id: str) -> str:
    return f"site:{site_id}:client"


def settings_key(site_id: str) -> str:
    return f"site:{site_id}:settings"


def media_key(site_id: str) -> str:
    return f"site:{site_id}:media"


def status_key(site_id: str) -> str:
    return f"site:{site_id}:status"


CONTENT_KEY_PATTERN = "site:*:client"


def site_id_from_key(key: str) -> str:
    """site:{siteId}:client -> siteId"""
    return key.split(":")[1]


def site_keys(site_id: str) -> List[str]:
    """Every key owned by a site"""
    return [
        content_key(site_id),
        settings_key(site_id),
        media_key(site_id),
        status_key(site_id),
    ]


class SiteSettings(BaseModel):
    """Private per-site settings; never returned to clients verbatim"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    admin_password_hash: str = Field(alias="adminPasswordHash")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    admin_email: str = Field(default="", alias="adminEmail")
    business_type: str = Field(default="", alias="businessType")
    welcome_email_sent: Optional[bool] = Field(default=None, alias="welcomeEmailSent")
    stripe_customer_id: Optional[str] = Field(default=None, alias="stripeCustomerId")
    subscription_id: Optional[str] = Field(default=None, alias="subscriptionId")

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MediaItem(BaseModel):
    """An uploaded image in a site's media library"""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    public_id: str = Field(alias="publicId")
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SiteSummary(BaseModel):
    """Row in the site directory listing"""
    model_config = ConfigDict(populate_by_name=True)

    site_id: str = Field(alias="siteId")
    business_name: str = Field(default="", alias="businessName")
    business_type: str = Field(default="", alias="businessType")
    email: str = ""
    created_at: str = Field(default="", alias="createdAt")
    last_updated: str = Field(default="", alias="lastUpdated")
    error: Optional[str] = None

    def to_public(self) -> Dict[str, Any]:
        if self.error:
            return {"siteId": self.site_id, "error": self.error}
        return self.model_dump(by_alias=True, exclude={"error"})


class SiteRecord(BaseModel):
    """Result of creating a site"""
    model_config = ConfigDict(populate_by_name=True)

    site_id: str = Field(alias="siteId")
    business_name: str = Field(alias="businessName")
    url: str
    admin_url: str = Field(alias="adminUrl")
    deployment_pending: bool = Field(default=False, alias="deploymentPending")
    deployment_error: Optional[str] = Field(default=None, alias="deploymentError")
    project_id: Optional[str] = Field(default=None, alias="projectId")


class DeletionResult(BaseModel):
    """Outcome of a cascading site delete"""
    site_id: str
    deleted_keys: List[str] = Field(default_factory=list)
    failed_keys: List[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_keys
