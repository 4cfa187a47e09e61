"""Key-value store backends"""

from ..utils.config import StoreSettings
from ..utils.exceptions import ConfigError
from .base import KeyValueStore
from .memory import InMemoryStore


def create_store(settings: StoreSettings) -> KeyValueStore:
    """Build the configured store backend"""
    if settings.backend == "memory":
        return InMemoryStore()
    if not settings.url:
        raise ConfigError("REDIS_URL (or KV_URL) is required when STORE_BACKEND=redis")
    from .redis_store import RedisStore
    return RedisStore(settings.url, socket_timeout=settings.socket_timeout)


__all__ = ["KeyValueStore", "InMemoryStore", "create_store"]
