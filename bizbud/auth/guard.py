"""
Tenant authorization guard.

Single choke point deciding whether a request may act on a site:

    operation     credential                                   CSRF
    PUBLIC_READ   none                                         no
    ADMIN_READ    session bound to the site                    yes (cookie)
    ADMIN_WRITE   session bound to the site, or a bearer       yes (cookie)

Bearer credentials come in two forms. A *tenant bearer* is a live session
token sent in the Authorization header; it is bound to one site exactly
like the cookie, but needs no CSRF token because headers are not sent
ambiently. The *platform bearer* is the configured PLATFORM_ADMIN_TOKEN;
it is accepted for ADMIN_WRITE on any site and is the only credential the
site directory surface (list/create/delete sites) accepts.

The wrong-tenant check always runs before the CSRF check.
"""

import hmac
from typing import Dict, Optional, Type

from ..models.auth import CredentialKind, Decision, DenyReason, OperationClass, RequestCredentials
from ..utils.exceptions import (
    AuthorizationError,
    ForbiddenError,
    InvalidCsrfError,
    InvalidOrExpiredTokenError,
    UnauthenticatedError,
    WrongTenantError,
)
from ..utils.logger import get_logger
from .sessions import SessionManager

logger = get_logger(__name__)

_DENY_ERRORS: Dict[DenyReason, Type[AuthorizationError]] = {
    DenyReason.UNAUTHENTICATED: UnauthenticatedError,
    DenyReason.INVALID_OR_EXPIRED_TOKEN: InvalidOrExpiredTokenError,
    DenyReason.WRONG_TENANT: WrongTenantError,
    DenyReason.INVALID_CSRF: InvalidCsrfError,
    DenyReason.FORBIDDEN: ForbiddenError,
}


class TenantGuard:
    """Decides ALLOW/DENY for (credentials, site, operation)"""

    def __init__(self, sessions: SessionManager, platform_token: Optional[str] = None):
        self.sessions = sessions
        self.platform_token = platform_token

    def _is_platform_token(self, token: Optional[str]) -> bool:
        if not token or not self.platform_token:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self.platform_token.encode("utf-8"))

    def authorize(
        self,
        credentials: RequestCredentials,
        target_site_id: str,
        operation: OperationClass,
    ) -> Decision:
        if operation is OperationClass.PUBLIC_READ:
            return Decision.allow(target_site_id, CredentialKind.NONE)

        if credentials.is_empty:
            return self._deny(DenyReason.UNAUTHENTICATED, target_site_id, operation)

        # Store outages on write paths surface as 503, not as a login prompt
        strict = operation is OperationClass.ADMIN_WRITE

        if credentials.session_token:
            bound_site = self.sessions.resolve_session(credentials.session_token, strict=strict)
            if bound_site is None:
                return self._deny(DenyReason.INVALID_OR_EXPIRED_TOKEN, target_site_id, operation)
            if bound_site != target_site_id:
                return self._deny(DenyReason.WRONG_TENANT, target_site_id, operation)
            if not self.sessions.verify_csrf(credentials.session_token, credentials.csrf_token, strict=strict):
                return self._deny(DenyReason.INVALID_CSRF, target_site_id, operation)
            return Decision.allow(target_site_id, CredentialKind.SESSION_COOKIE)

        return self._authorize_bearer(credentials.bearer_token, target_site_id, operation, strict)

    def _authorize_bearer(
        self,
        bearer_token: Optional[str],
        target_site_id: str,
        operation: OperationClass,
        strict: bool,
    ) -> Decision:
        if self._is_platform_token(bearer_token):
            if operation is OperationClass.ADMIN_WRITE:
                return Decision.allow(target_site_id, CredentialKind.PLATFORM_BEARER)
            return self._deny(DenyReason.FORBIDDEN, target_site_id, operation)

        bound_site = self.sessions.resolve_session(bearer_token, strict=strict)
        if bound_site is None:
            return self._deny(DenyReason.INVALID_OR_EXPIRED_TOKEN, target_site_id, operation)
        if bound_site != target_site_id:
            return self._deny(DenyReason.WRONG_TENANT, target_site_id, operation)
        return Decision.allow(target_site_id, CredentialKind.TENANT_BEARER)

    def authorize_platform(self, credentials: RequestCredentials) -> Decision:
        """Site directory surface: only the platform bearer is accepted"""
        if not credentials.bearer_token:
            return self._deny(DenyReason.UNAUTHENTICATED, None, None)
        if not self.platform_token:
            logger.warning("Platform admin surface disabled: PLATFORM_ADMIN_TOKEN not set")
            return self._deny(DenyReason.FORBIDDEN, None, None)
        if not self._is_platform_token(credentials.bearer_token):
            return self._deny(DenyReason.INVALID_OR_EXPIRED_TOKEN, None, None)
        return Decision.allow(None, CredentialKind.PLATFORM_BEARER)

    def require(
        self,
        credentials: RequestCredentials,
        target_site_id: str,
        operation: OperationClass,
    ) -> Decision:
        """authorize() that raises the matching AuthorizationError on deny"""
        decision = self.authorize(credentials, target_site_id, operation)
        self.raise_for(decision)
        return decision

    @staticmethod
    def raise_for(decision: Decision) -> None:
        if decision.allowed:
            return
        error_cls = _DENY_ERRORS.get(decision.reason, ForbiddenError)
        raise error_cls(decision.reason.value if decision.reason else None)

    def _deny(
        self,
        reason: DenyReason,
        target_site_id: Optional[str],
        operation: Optional[OperationClass],
    ) -> Decision:
        logger.info(
            "Authorization denied",
            reason=reason.value,
            target_site_id=target_site_id,
            operation=operation.value if operation else "platform",
        )
        return Decision.deny(reason)
