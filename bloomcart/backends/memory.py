import asyncio
import fnmatch
import time
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional

from bloomcart.types import CacheEntry

from .base import BaseCacheBackend

logger = getLogger(__name__)


class MemoryBackend(BaseCacheBackend):
    """In-memory cache backend implementation.

    Expired entries are evicted lazily, when a read finds them stale.
    """

    def __init__(self, timer: Callable[[], float] = time.time) -> None:
        self.cache: dict[str, CacheEntry] = {}
        self.lock = asyncio.Lock()
        self.timer = timer

    async def get(self, key: str) -> Optional[Any]:
        async with self.lock:
            entry = self.cache.get(key)
            if entry is None:
                return None
            if entry.is_valid(self.timer()):
                return entry.data
            del self.cache[key]
            logger.debug("Evicted expired entry <%s>", key)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self.lock:
            expires_at = self.timer() + ttl if ttl is not None else float("inf")
            self.cache[key] = CacheEntry(data=value, expires_at=expires_at)

    async def delete(self, key: str) -> bool:
        async with self.lock:
            return self.cache.pop(key, None) is not None

    async def clear(self) -> int:
        async with self.lock:
            count = len(self.cache)
            self.cache.clear()
            return count

    async def clear_pattern(self, pattern: str) -> int:
        async with self.lock:
            matched = [k for k in self.cache if fnmatch.fnmatchcase(k, pattern)]
            for key in matched:
                del self.cache[key]
            return len(matched)

    async def get_all_keys(self) -> list[str]:
        async with self.lock:
            return list(self.cache.keys())

    async def get_cache_data(self) -> dict[str, CacheEntry]:
        async with self.lock:
            return dict(self.cache)
