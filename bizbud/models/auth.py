"""Authorization data models"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperationClass(str, Enum):
    PUBLIC_READ = "public_read"
    ADMIN_READ = "admin_read"
    ADMIN_WRITE = "admin_write"


class RequestOrigin(str, Enum):
    ADMIN = "admin"
    PUBLIC = "public"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    WRONG_TENANT = "wrong_tenant"
    INVALID_CSRF = "invalid_csrf"
    FORBIDDEN = "forbidden"


class CredentialKind(str, Enum):
    NONE = "none"
    SESSION_COOKIE = "session_cookie"
    TENANT_BEARER = "tenant_bearer"
    PLATFORM_BEARER = "platform_bearer"


@dataclass(frozen=True)
class SessionPair:
    """Session token plus its CSRF token, minted together at login"""
    session_token: str
    csrf_token: str


@dataclass(frozen=True)
class RequestCredentials:
    """Everything a request can present to prove who it is"""
    session_token: Optional[str] = None
    csrf_token: Optional[str] = None
    bearer_token: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.session_token and not self.bearer_token


@dataclass(frozen=True)
class Decision:
    """Allow or Deny outcome from the tenant guard"""
    allowed: bool
    site_id: Optional[str] = None
    via: CredentialKind = CredentialKind.NONE
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls, site_id: Optional[str], via: CredentialKind) -> "Decision":
        return cls(allowed=True, site_id=site_id, via=via)

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed
