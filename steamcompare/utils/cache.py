import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...


class TTLCache:
    """
    In-process key/value cache where every entry expires `ttl` seconds after insertion.

    Expired entries are dropped when read and on every write. `None` is never stored, so a `get`
    returning `None` always means a miss.

    Args:
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at, ttl = entry
            if self._clock() - inserted_at < ttl:
                return value
            del self._entries[key]
            return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        if value is None or ttl <= 0:
            return
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._entries[key] = (value, now, ttl)

    def _evict_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (_, inserted_at, ttl) in self._entries.items() if now - inserted_at >= ttl]
        for k in expired:
            del self._entries[k]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def remember(cache: Cache, key: str, ttl: float, compute: Callable[[], T]) -> T:
    """Return the cached value for `key`, computing and storing it on a miss."""
    value = cache.get(key)
    if value is not None:
        logger.debug(f"Cache hit: {key}")
        return value

    logger.debug(f"Cache miss: {key}")
    value = compute()
    cache.set(key, value, ttl)
    return value
