"""Session, authorization and tenant-isolation core"""

from .classifier import RequestClassifier
from .guard import TenantGuard
from .passwords import PasswordHasher
from .sessions import SessionManager

__all__ = [
    "PasswordHasher",
    "RequestClassifier",
    "SessionManager",
    "TenantGuard",
]
