"""In-process key-value store with TTL support (development and tests)"""

import threading
import time
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base import KeyValueStore, decode_value, encode_value


class InMemoryStore(KeyValueStore):
    """
    Dict-backed store.

    Values are kept encoded exactly as the Redis backend would keep them so
    both behave the same way. ``clock`` returns seconds and can be replaced
    to test expiry.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def get(self, key: str) -> Any:
        with self._lock:
            raw = self._live(key)
        if isinstance(raw, list):
            return [decode_value(item) for item in raw]
        return decode_value(raw)

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None, nx: bool = False) -> bool:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            if nx and self._live(key) is not None:
                return False
            self._data[key] = (encode_value(value), expires_at)
            return True

    def delete(self, key: str) -> int:
        with self._lock:
            if self._live(key) is None:
                return 0
            del self._data[key]
            return 1

    def keys(self, pattern: str) -> List[str]:
        with self._lock:
            return [k for k in list(self._data) if self._live(k) is not None and fnmatchcase(k, pattern)]

    def _push(self, key: str, values: Tuple[Any, ...], left: bool) -> int:
        encoded = [encode_value(v) for v in values]
        with self._lock:
            current = self._live(key)
            if current is None:
                current = []
            elif not isinstance(current, list):
                raise TypeError(f"{key} does not hold a list")
            if left:
                # LPUSH a b c -> [c, b, a, ...]
                current = list(reversed(encoded)) + current
            else:
                current = current + encoded
            expires_at = self._data.get(key, (None, None))[1]
            self._data[key] = (current, expires_at)
            return len(current)

    def lpush(self, key: str, *values: Any) -> int:
        return self._push(key, values, left=True)

    def rpush(self, key: str, *values: Any) -> int:
        return self._push(key, values, left=False)

    def lrange(self, key: str, start: int = 0, end: int = -1) -> List[Any]:
        with self._lock:
            current = self._live(key) or []
        if not isinstance(current, list):
            raise TypeError(f"{key} does not hold a list")
        stop = (end + 1) or None
        return [decode_value(item) for item in current[start:stop]]

    def lrem(self, key: str, value: Any, count: int = 0) -> int:
        target = encode_value(value)
        with self._lock:
            current = self._live(key)
            if current is None:
                return 0
            if not isinstance(current, list):
                raise TypeError(f"{key} does not hold a list")
            # negative count scans from the tail, as in Redis
            order = list(range(len(current)))
            if count < 0:
                order.reverse()
            limit = abs(count) or len(current)
            drop = set()
            for i in order:
                if len(drop) >= limit:
                    break
                if current[i] == target:
                    drop.add(i)
            if not drop:
                return 0
            remaining = [item for i, item in enumerate(current) if i not in drop]
            if remaining:
                self._data[key] = (remaining, self._data[key][1])
            else:
                del self._data[key]
            return len(drop)
