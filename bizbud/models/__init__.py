"""Data models"""

from .auth import (
    CredentialKind,
    Decision,
    DenyReason,
    OperationClass,
    RequestCredentials,
    RequestOrigin,
    SessionPair,
)
from .site import DeletionResult, MediaItem, SiteRecord, SiteSettings, SiteSummary

__all__ = [
    "CredentialKind",
    "Decision",
    "DeletionResult",
    "DenyReason",
    "MediaItem",
    "OperationClass",
    "RequestCredentials",
    "RequestOrigin",
    "SessionPair",
    "SiteRecord",
    "SiteSettings",
    "SiteSummary",
]
