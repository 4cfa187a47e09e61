"""Redis-backed key-value store"""

from functools import wraps
from typing import Any, List, Optional

import redis

from ..utils.exceptions import StoreUnavailableError
from ..utils.logger import get_logger
from .base import KeyValueStore, decode_value, encode_value

logger = get_logger(__name__)


def _translate_errors(func):
    """Map redis-py failures onto StoreUnavailableError"""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except redis.exceptions.RedisError as e:
            logger.error("Redis operation failed", operation=func.__name__, error=str(e))
            raise StoreUnavailableError(f"Redis {func.__name__} failed: {e}") from e
    return wrapper


class RedisStore(KeyValueStore):
    """
    Manages a connection to Redis.

    The redis-py client is thread safe and pools connections itself; this
    class only holds configuration and does value encoding.
    """

    def __init__(self, url: str, socket_timeout: float = 5.0, client: Optional[redis.Redis] = None) -> None:
        self.r = client or redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    @_translate_errors
    def get(self, key: str) -> Any:
        return decode_value(self.r.get(key))

    @_translate_errors
    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None, nx: bool = False) -> bool:
        # SET ... EX [NX] keeps value, expiry and the existence check in one command
        return bool(self.r.set(key, encode_value(value), ex=ttl_seconds or None, nx=nx))

    @_translate_errors
    def delete(self, key: str) -> int:
        return int(self.r.delete(key))

    @_translate_errors
    def keys(self, pattern: str) -> List[str]:
        return list(self.r.scan_iter(match=pattern))

    @_translate_errors
    def lpush(self, key: str, *values: Any) -> int:
        return int(self.r.lpush(key, *[encode_value(v) for v in values]))

    @_translate_errors
    def rpush(self, key: str, *values: Any) -> int:
        return int(self.r.rpush(key, *[encode_value(v) for v in values]))

    @_translate_errors
    def lrange(self, key: str, start: int = 0, end: int = -1) -> List[Any]:
        return [decode_value(item) for item in self.r.lrange(key, start, end)]

    @_translate_errors
    def lrem(self, key: str, value: Any, count: int = 0) -> int:
        return int(self.r.lrem(key, count, encode_value(value)))

    @_translate_errors
    def ping(self) -> bool:
        return bool(self.r.ping())
