"""Cache backend implementations for bloomcart."""

from .base import BaseCacheBackend
from .memory import MemoryBackend
from .redis import AsyncRedisCacheBackend

__all__ = [
    "AsyncRedisCacheBackend",
    "BaseCacheBackend",
    "MemoryBackend",
]
