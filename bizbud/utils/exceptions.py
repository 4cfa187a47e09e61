"""Custom exceptions for the BizBud site platform"""

from typing import Optional


class BizBudError(Exception):
    """Base exception for BizBud"""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.public_message
        super().__init__(self.message)


class InvalidInputError(BizBudError):
    """Malformed siteId, password or request body"""
    status_code = 400
    public_message = "Invalid input"


class InvalidSiteIdError(InvalidInputError):
    """siteId is not lowercase a-z, 0-9 and dashes"""
    public_message = "siteId must be lowercase a-z, 0-9 and dashes"


class WeakPasswordError(InvalidInputError):
    """Password shorter than the minimum length"""
    public_message = "Password must be at least 6 characters"


class AuthorizationError(BizBudError):
    """Base for every failure that ends in a 401/403.

    The message is always the generic ``public_message`` so callers cannot
    tell which site a token actually belongs to.
    """
    status_code = 403
    public_message = "Not authorized"

    def __init__(self, message: Optional[str] = None):
        # detail is kept for logs only
        self.detail = message
        super().__init__(self.public_message)


class UnauthenticatedError(AuthorizationError):
    """No credential presented"""
    status_code = 401
    public_message = "Authentication required"


class InvalidOrExpiredTokenError(AuthorizationError):
    """Session or bearer token unknown or expired"""
    status_code = 401
    public_message = "Invalid or expired token"


class WrongTenantError(AuthorizationError):
    """Valid session, but minted for a different site"""
    public_message = "Not authorized to access this site"


class InvalidCsrfError(AuthorizationError):
    """CSRF header missing or not equal to the stored token"""
    public_message = "Invalid CSRF token"


class ForbiddenError(AuthorizationError):
    """Protected resource, e.g. deleting a reserved site"""
    public_message = "Forbidden"


class NotFoundError(BizBudError):
    """Site, template or media item absent"""
    status_code = 404
    public_message = "Not found"


class TemplateMissingError(NotFoundError):
    """Template site content is missing"""
    public_message = "Template site missing"


class AlreadyExistsError(BizBudError):
    """Duplicate site creation"""
    status_code = 409
    public_message = "Site exists"


class StoreUnavailableError(BizBudError):
    """Key-value store could not be reached"""
    status_code = 503
    public_message = "Database connection unavailable"


class IntegrationUnavailableError(BizBudError):
    """Optional integration (media host, payments) is not configured"""
    status_code = 503
    public_message = "Service not configured"


class UpstreamError(BizBudError):
    """Error from an external service (media host, deploy platform, payments)"""
    status_code = 502
    public_message = "Upstream service error"

    def __init__(self, message: Optional[str] = None, service: Optional[str] = None):
        self.service = service
        super().__init__(message)


class UploadFailedError(UpstreamError):
    """Media host upload failed"""
    public_message = "Failed to upload to image service"


class DeleteFailedError(UpstreamError):
    """Media host delete failed"""
    public_message = "Failed to delete image"


class DeployError(UpstreamError):
    """Deploy platform call failed"""
    public_message = "Deployment platform error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.upstream_status = status_code
        super().__init__(message, service="vercel")


class WebhookSignatureError(UpstreamError):
    """Payments provider signature could not be verified"""
    status_code = 400
    public_message = "Webhook signature verification failed"


class ConfigError(BizBudError):
    """Configuration error"""
    public_message = "Configuration error"
