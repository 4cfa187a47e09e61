"""
Admin session management.

A login mints two independent random tokens:

- the session token, delivered as the HttpOnly ``adminToken`` cookie and
  stored as ``session:{token} = siteId``
- the CSRF token, returned once in the login body and stored as
  ``csrf:{token} = csrfToken``

Both keys expire together after ``ttl_seconds`` (24 hours by default).
"""

import hmac
import secrets
from typing import Optional

from ..models.auth import SessionPair
from ..models.site import settings_key
from ..store.base import KeyValueStore
from ..utils.exceptions import NotFoundError, StoreUnavailableError
from ..utils.logger import get_logger
from .passwords import PasswordHasher

logger = get_logger(__name__)

SESSION_TTL_SECONDS = 24 * 60 * 60


def session_key(token: str) -> str:
    return f"session:{token}"


def csrf_key(token: str) -> str:
    return f"csrf:{token}"


def _token_prefix(token: str) -> str:
    return token[:8]


class SessionManager:
    """Issues, validates and revokes session/CSRF token pairs"""

    def __init__(
        self,
        store: KeyValueStore,
        hasher: Optional[PasswordHasher] = None,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ):
        self.store = store
        self.hasher = hasher or PasswordHasher()
        self.ttl_seconds = ttl_seconds
        self._dummy_hash: Optional[str] = None

    def create_session(self, site_id: str) -> SessionPair:
        """Mint a session token bound to site_id plus its CSRF token"""
        session_token = secrets.token_urlsafe(32)
        csrf_token = secrets.token_urlsafe(32)

        self.store.set(session_key(session_token), site_id, ttl_seconds=self.ttl_seconds)
        self.store.set(csrf_key(session_token), csrf_token, ttl_seconds=self.ttl_seconds)

        logger.info("Session created", site_id=site_id, token=_token_prefix(session_token))
        return SessionPair(session_token=session_token, csrf_token=csrf_token)

    def hash_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify_password(self, site_id: str, password: str) -> bool:
        """
        Check a plaintext password against the site's stored hash.

        Raises:
            NotFoundError: site has no settings or no password hash
            StoreUnavailableError: store unreachable
        """
        settings = self.store.get(settings_key(site_id))
        password_hash = settings.get("adminPasswordHash") if isinstance(settings, dict) else None
        if not password_hash:
            # unknown sites pay the same bcrypt cost as a wrong password
            self.hasher.verify(password, self._get_dummy_hash())
            raise NotFoundError(f"No admin password configured for site {site_id}")
        return self.hasher.verify(password, password_hash)

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(secrets.token_urlsafe(16))
        return self._dummy_hash

    def resolve_session(self, session_token: Optional[str], strict: bool = False) -> Optional[str]:
        """
        Return the siteId a session token was minted for, or None.

        With strict=False a store outage is logged and treated as "no
        session"; with strict=True it propagates.
        """
        if not session_token:
            return None
        try:
            site_id = self.store.get(session_key(session_token))
        except StoreUnavailableError:
            if strict:
                raise
            logger.warning("Session lookup failed, treating as absent", reason="store_unavailable")
            return None
        return site_id if isinstance(site_id, str) and site_id else None

    def verify_csrf(self, session_token: Optional[str], supplied: Optional[str], strict: bool = False) -> bool:
        """True only if a CSRF token is stored for the session and equals supplied"""
        if not session_token or not supplied:
            return False
        try:
            stored = self.store.get(csrf_key(session_token))
        except StoreUnavailableError:
            if strict:
                raise
            logger.warning("CSRF lookup failed, treating as mismatch", reason="store_unavailable")
            return False
        if not isinstance(stored, str) or not stored:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))

    def revoke_session(self, session_token: Optional[str]) -> None:
        """Delete the session and CSRF keys (idempotent, never raises on store failure)"""
        if not session_token:
            return
        for key in (session_key(session_token), csrf_key(session_token)):
            try:
                self.store.delete(key)
            except StoreUnavailableError as e:
                # Cookie is cleared regardless; the key will expire on its own
                logger.error("Failed to revoke session key", key=key.split(":", 1)[0], error=str(e))
