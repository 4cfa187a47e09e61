"""API request/response models for the site platform"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(_CamelModel):
    """Admin login for one site"""
    site_id: str = Field(default="", alias="siteId")
    password: str = ""


class LoginResponse(_CamelModel):
    success: bool = True
    csrf_token: str = Field(alias="csrfToken")


class SaveClientDataRequest(_CamelModel):
    """Replace a site's content; siteId defaults to the siteId cookie"""
    site_id: Optional[str] = Field(default=None, alias="siteId")
    client_data: Optional[Dict[str, Any]] = Field(default=None, alias="clientData")


class CreateSiteRequest(_CamelModel):
    site_id: str = Field(default="", alias="siteId")
    business_name: str = Field(default="", alias="businessName")
    business_type: str = Field(default="", alias="businessType")
    password: str = ""
    email: str = ""


class PaymentTierRequest(_CamelModel):
    site_id: str = Field(default="", alias="siteId")
    payment_tier: str = Field(default="", alias="paymentTier")


class DeleteMediaRequest(_CamelModel):
    site_id: str = Field(default="", alias="siteId")
    public_id: str = Field(default="", alias="publicId")


class DeleteSiteResponse(_CamelModel):
    success: bool
    site_id: str = Field(alias="siteId")
    deleted_keys: List[str] = Field(default_factory=list, alias="deletedKeys")
    failed_keys: List[str] = Field(default_factory=list, alias="failedKeys")


class SiteStatusResponse(_CamelModel):
    """Deployment status of a site"""
    status: str
    url: Optional[str] = None
    admin_url: Optional[str] = Field(default=None, alias="adminUrl")
    deployed_at: Optional[Any] = Field(default=None, alias="deployedAt")
    message: Optional[str] = None
