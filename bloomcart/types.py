"""Type definitions and type aliases for bloomcart."""

from dataclasses import dataclass
from typing import Any
from typing import Literal

# Namespace prefix for every entry kept in durable storage
CACHE_KEY_PREFIX = "api-cache:"

StorageType = Literal["memory", "persistent"]


@dataclass
class CacheEntry:
    """Cached value with an absolute expiry time.

    Args:
        data: The cached value, opaque to the cache itself
        expires_at: Epoch timestamp (seconds) when this entry stops being valid
    """

    data: Any
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at
