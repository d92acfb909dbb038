"""Two-tier TTL cache for catalog reads, plus a read-through binding."""

import inspect
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from logging import getLogger
from typing import Any
from typing import Generic
from typing import Optional
from typing import TypeVar

from bloomcart.backends import BaseCacheBackend
from bloomcart.backends import MemoryBackend
from bloomcart.config import CacheConfig
from bloomcart.exceptions import BackendNotFoundError
from bloomcart.exceptions import FetchError
from bloomcart.types import StorageType

T = TypeVar("T")

logger = getLogger(__name__)


async def get_result(func: Callable[[], Any]) -> Any:
    """Call a fetch function, awaiting it when it returns an awaitable."""
    result = func()
    if inspect.isawaitable(result):
        return await result
    return result


class ApiCache:
    """Key-value cache with per-entry TTL over an in-process and a durable tier.

    The memory tier is always present. The persistent tier is optional; asking
    for it when it is not configured raises BackendNotFoundError.
    """

    def __init__(
        self,
        memory: Optional[BaseCacheBackend] = None,
        persistent: Optional[BaseCacheBackend] = None,
        config: Optional[CacheConfig] = None,
    ) -> None:
        self.memory = memory if memory is not None else MemoryBackend()
        self.persistent = persistent
        self.config = config if config is not None else CacheConfig()

    def _storage_type(self, storage_type: Optional[StorageType]) -> StorageType:
        return storage_type or self.config.default_storage

    def _backend(self, storage_type: Optional[StorageType]) -> BaseCacheBackend:
        if self._storage_type(storage_type) == "persistent":
            if self.persistent is None:
                msg = "Persistent cache backend is not set."
                raise BackendNotFoundError(msg)
            return self.persistent
        return self.memory

    def _tiers(self) -> list[BaseCacheBackend]:
        return [self.memory] if self.persistent is None else [self.memory, self.persistent]

    async def get(self, key: str, storage_type: Optional[StorageType] = None) -> Any:
        """Get a value if present and not expired; expired entries are dropped."""
        value = await self._backend(storage_type).get(key)
        if value is None:
            logger.debug("Cache miss <%s>", key)
        else:
            logger.debug("Cache hit <%s>", key)
        return value

    async def set(
        self,
        key: str,
        data: Any,
        ttl_minutes: Optional[float] = None,
        storage_type: Optional[StorageType] = None,
    ) -> None:
        """Store a value, overwriting any existing entry for the key."""
        if ttl_minutes is None:
            ttl_minutes = self.config.default_ttl_minutes
        await self._backend(storage_type).set(key, data, ttl=ttl_minutes * 60)
        logger.debug("Cache set <%s> ttl=%sm", key, ttl_minutes)

    async def clear(self, key: str, storage_type: Optional[StorageType] = None) -> None:
        """Remove one key from the memory tier and, if asked, durable storage."""
        if self._storage_type(storage_type) == "persistent":
            await self._backend("persistent").delete(key)
        await self.memory.delete(key)

    async def clear_all(self, storage_type: Optional[StorageType] = None) -> int:
        """Remove every namespaced entry. Used for logout and reset flows."""
        cleared = 0
        if self._storage_type(storage_type) == "persistent":
            cleared += await self._backend("persistent").clear()
        cleared += await self.memory.clear()
        logger.info("Cleared %d cache entries", cleared)
        return cleared

    async def invalidate_key(self, key: str) -> int:
        """Drop one key from every configured tier."""
        removed = 0
        for backend in self._tiers():
            removed += int(await backend.delete(key))
        logger.debug("Invalidated key <%s> (%d removed)", key, removed)
        return removed

    async def invalidate_keys(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in keys:
            removed += await self.invalidate_key(key)
        return removed

    async def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching a glob pattern such as ``bouquets:*``."""
        removed = 0
        for backend in self._tiers():
            removed += await backend.clear_pattern(pattern)
        logger.info("Pattern <%s> invalidated %d entries", pattern, removed)
        return removed

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl_minutes: Optional[float] = None,
        storage_type: Optional[StorageType] = None,
    ) -> T:
        """Serve a cached value or fetch, store and return a fresh one.

        ``None`` results are returned but never cached.
        """
        cached = await self.get(key, storage_type)
        if cached is not None:
            return cached
        result = await get_result(fetch_fn)
        if result is not None:
            await self.set(key, result, ttl_minutes, storage_type)
        return result


class CachedData(Generic[T]):
    """Read-through binding of a cache key to a fetch function.

    Exposes ``data``, ``is_loading`` and ``error`` the way a view reads them.
    A failed fetch leaves any cached entry untouched and is recorded on
    ``error`` instead of being cached.
    """

    def __init__(
        self,
        cache: ApiCache,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl_minutes: Optional[float] = None,
        storage_type: Optional[StorageType] = None,
        enabled: bool = True,
    ) -> None:
        self.cache = cache
        self.key = key
        self.fetch_fn = fetch_fn
        self.ttl_minutes = ttl_minutes
        self.storage_type = storage_type
        self.enabled = enabled
        self.data: Optional[T] = None
        self.is_loading = False
        self.error: Optional[FetchError] = None

    async def load(self) -> Optional[T]:
        """Seed from the cache and fetch only when nothing valid is cached."""
        self.data = await self.cache.get(self.key, self.storage_type)
        if self.data is None and self.enabled:
            try:
                await self.refetch()
            except FetchError:
                logger.exception("Read-through fetch failed for <%s>", self.key)
        return self.data

    async def refetch(self) -> T:
        """Fetch bypassing the cache and re-populate it.

        Raises:
            FetchError: If the fetch function fails
        """
        self.is_loading = True
        self.error = None
        try:
            result = await get_result(self.fetch_fn)
        except Exception as e:
            self.error = FetchError(self.key, f"Failed to load {self.key!r}: {e}")
            raise self.error from e
        finally:
            self.is_loading = False

        self.data = result
        if result is not None:
            await self.cache.set(self.key, result, self.ttl_minutes, self.storage_type)
        return result


async def use_cached_data(
    cache: ApiCache,
    key: str,
    fetch_fn: Callable[[], Awaitable[T]],
    ttl_minutes: Optional[float] = None,
    storage_type: Optional[StorageType] = None,
    enabled: bool = True,
) -> CachedData[T]:
    """Bind a key to a fetch function and perform the initial load."""
    binding = CachedData(cache, key, fetch_fn, ttl_minutes, storage_type, enabled)
    await binding.load()
    return binding
