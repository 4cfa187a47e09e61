"""
FastAPI dependencies for authentication and authorization.
"""

from typing import Optional

from fastapi import Depends, Request

from bizbud.auth import TenantGuard
from bizbud.models.auth import Decision, OperationClass, RequestCredentials

from .deps import get_guard

SESSION_COOKIE = "adminToken"
SITE_COOKIE = "siteId"
CSRF_HEADER = "X-CSRF-Token"


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer`` header"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the adminToken cookie"""
    return request.cookies.get(SESSION_COOKIE) or None


def get_credentials(request: Request) -> RequestCredentials:
    """Everything the request presents: cookie session, CSRF header, bearer"""
    return RequestCredentials(
        session_token=get_session_token(request),
        csrf_token=request.headers.get(CSRF_HEADER) or None,
        bearer_token=get_bearer_token(request),
    )


def authorize_site(
    guard: TenantGuard,
    credentials: RequestCredentials,
    site_id: str,
    operation: OperationClass,
) -> Decision:
    """Guard check for routes whose target site comes from the body or query"""
    return guard.require(credentials, site_id, operation)


async def require_platform_admin(
    credentials: RequestCredentials = Depends(get_credentials),
    guard: TenantGuard = Depends(get_guard),
) -> Decision:
    """Dependency for the site directory surface (list/create/delete sites)"""
    decision = guard.authorize_platform(credentials)
    guard.raise_for(decision)
    return decision
