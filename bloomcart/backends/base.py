from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Optional

from bloomcart.types import CacheEntry


class BaseCacheBackend(ABC):
    """Base class for all cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Retrieve a cached value, or None on miss or expiry."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value in the cache for ttl seconds."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a value from the cache. Returns whether it existed."""

    @abstractmethod
    async def clear(self) -> int:
        """Clear all cached values owned by this backend."""

    @abstractmethod
    async def clear_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern."""

    @abstractmethod
    async def get_all_keys(self) -> list[str]:
        """List every key currently stored, expired or not."""

    @abstractmethod
    async def get_cache_data(self) -> dict[str, CacheEntry]:
        """Return raw entries without evicting expired ones."""
