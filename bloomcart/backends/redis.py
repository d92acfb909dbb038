import json
import math
import time
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING
from typing import Any
from typing import Optional

from fastapi.encoders import jsonable_encoder

from bloomcart.exceptions import BloomCartError
from bloomcart.exceptions import CacheError
from bloomcart.types import CACHE_KEY_PREFIX
from bloomcart.types import CacheEntry

from .base import BaseCacheBackend

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = getLogger(__name__)


class AsyncRedisCacheBackend(BaseCacheBackend):
    """Durable cache backend storing one Redis key per entry.

    Entries are written as ``{"data": ..., "expiresAt": <epoch ms>}`` under
    ``key_prefix + key``. A native Redis expiry is set as well, but reads still
    check ``expiresAt`` and delete stale entries themselves.
    """

    client: "Redis"

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        socket_timeout: float = 1.0,
        socket_connect_timeout: float = 1.0,
        key_prefix: str = CACHE_KEY_PREFIX,
        url: Optional[str] = None,
        timer: Callable[[], float] = time.time,
    ) -> None:
        try:
            from redis.asyncio import Redis
        except ImportError:
            msg = (
                "redis[hiredis] is not installed. "
                "Install it with `pip install bloomcart[redis]`"
            )
            raise BloomCartError(msg) from None

        if url is not None:
            self.client = Redis.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
                decode_responses=True,
            )
        else:
            self.client = Redis(
                host=host,
                port=port,
                password=password,
                db=db,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
                decode_responses=True,
            )
        self.key_prefix = key_prefix
        self.timer = timer

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _strip_key(self, key: str) -> str:
        return key[len(self.key_prefix) :] if key.startswith(self.key_prefix) else key

    def _serialize(self, entry: CacheEntry) -> str:
        expires_at = None if math.isinf(entry.expires_at) else entry.expires_at * 1000
        try:
            return json.dumps(
                {"data": jsonable_encoder(entry.data), "expiresAt": expires_at},
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            msg = f"Value is not JSON serializable: {e}"
            raise CacheError(msg) from e

    def _deserialize(self, raw: str) -> Optional[CacheEntry]:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload")
            return None
        if not isinstance(payload, dict) or "data" not in payload:
            logger.warning("Discarding cache payload without data field")
            return None
        expires_at = payload.get("expiresAt")
        return CacheEntry(
            data=payload["data"],
            expires_at=float("inf") if expires_at is None else expires_at / 1000,
        )

    async def get(self, key: str) -> Optional[Any]:
        redis_key = self._make_key(key)
        raw = await self.client.get(redis_key)
        if raw is None:
            return None
        entry = self._deserialize(raw)
        if entry is None:
            return None
        if not entry.is_valid(self.timer()):
            await self.client.delete(redis_key)
            logger.debug("Evicted expired entry <%s>", key)
            return None
        return entry.data

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = self.timer()
        expires_at = now + ttl if ttl is not None else float("inf")
        payload = self._serialize(CacheEntry(data=value, expires_at=expires_at))
        if ttl is not None:
            await self.client.set(
                self._make_key(key), payload, px=max(1, math.ceil(ttl * 1000))
            )
        else:
            await self.client.set(self._make_key(key), payload)

    async def delete(self, key: str) -> bool:
        return bool(await self.client.delete(self._make_key(key)))

    async def _delete_matching(self, match: str) -> int:
        keys = [k async for k in self.client.scan_iter(match=match)]
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def clear(self) -> int:
        return await self._delete_matching(f"{self.key_prefix}*")

    async def clear_pattern(self, pattern: str) -> int:
        if not pattern.startswith(self.key_prefix):
            pattern = self._make_key(pattern)
        return await self._delete_matching(pattern)

    async def get_all_keys(self) -> list[str]:
        return [
            self._strip_key(k)
            async for k in self.client.scan_iter(match=f"{self.key_prefix}*")
        ]

    async def get_cache_data(self) -> dict[str, CacheEntry]:
        data: dict[str, CacheEntry] = {}
        for key in await self.get_all_keys():
            raw = await self.client.get(self._make_key(key))
            if raw is None:
                continue
            entry = self._deserialize(raw)
            if entry is not None:
                data[key] = entry
        return data

    async def close(self) -> None:
        await self.client.aclose()
