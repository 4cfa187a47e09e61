"""
Key-value store interface.

All persistent state (site content, settings, media lists, session and
CSRF tokens) lives in one flat namespace. Implementations must provide
atomic single-key get/set/delete and list push; nothing here assumes
multi-key transactions.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, List, Optional


def encode_value(value: Any) -> str:
    """Every value is stored as JSON, strings included, so "123" stays a string"""
    return json.dumps(value, ensure_ascii=False, default=str)


def decode_value(raw: Optional[Any]) -> Any:
    """Inverse of encode_value; raw payloads written by other tools come back as strings"""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


class KeyValueStore(ABC):
    """Abstract key-value store.

    Every method may raise :class:`StoreUnavailableError` when the backend
    cannot be reached.
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the decoded value, or None if absent/expired"""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None, nx: bool = False) -> bool:
        """Replace the value; the TTL is applied in the same operation.

        With nx=True the write only happens if the key is absent. Returns
        whether the value was written.
        """

    @abstractmethod
    def delete(self, key: str) -> int:
        """Delete a key; returns the number of keys removed (0 if absent)"""

    @abstractmethod
    def keys(self, pattern: str) -> List[str]:
        """Glob-style scan (``site:*:client``)"""

    @abstractmethod
    def lpush(self, key: str, *values: Any) -> int:
        """Prepend values; returns the new list length"""

    @abstractmethod
    def rpush(self, key: str, *values: Any) -> int:
        """Append values; returns the new list length"""

    @abstractmethod
    def lrange(self, key: str, start: int = 0, end: int = -1) -> List[Any]:
        """Decoded list slice, inclusive of end like Redis LRANGE"""

    @abstractmethod
    def lrem(self, key: str, value: Any, count: int = 0) -> int:
        """Remove list members equal to value (all when count is 0); returns how many"""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def ping(self) -> bool:
        return True
