"""Per-session cart persistence."""

import secrets
from logging import getLogger
from typing import Optional

from pydantic import ValidationError

from bloomcart.backends import BaseCacheBackend
from bloomcart.config import CartConfig
from bloomcart.exceptions import CacheError
from bloomcart.types import CACHE_KEY_PREFIX

from .engine import CartEngine
from .models import cart_items_adapter

logger = getLogger(__name__)


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


class CartStorage:
    """Stores each session's cart lines under one namespaced key.

    Only the item list is persisted. Totals are recomputed after loading and
    the drawer flag lives under its own key.
    """

    def __init__(
        self,
        backend: BaseCacheBackend,
        config: Optional[CartConfig] = None,
        cache_prefix: str = CACHE_KEY_PREFIX,
    ) -> None:
        prefix = getattr(backend, "key_prefix", "")
        if cache_prefix and prefix.startswith(cache_prefix):
            msg = (
                f"Cart backend key prefix {prefix!r} is inside the cache namespace "
                f"{cache_prefix!r}; give the cart backend its own prefix, "
                'e.g. key_prefix="cart:"'
            )
            raise CacheError(msg)
        self.backend = backend
        self.config = config if config is not None else CartConfig()

    def _items_key(self, session_id: str) -> str:
        return f"{self.config.storage_key}:{session_id}"

    def _drawer_key(self, session_id: str) -> str:
        return f"{self.config.storage_key}:{session_id}:drawer"

    async def load(self, session_id: str) -> CartEngine:
        """Rehydrate a session's cart; unreadable data yields an empty cart."""
        raw = await self.backend.get(self._items_key(session_id))
        engine = CartEngine()
        if raw is not None:
            try:
                engine.items = cart_items_adapter.validate_python(raw)
            except ValidationError:
                logger.exception("Discarding corrupt cart for session %s", session_id)
        engine.is_cart_open = bool(await self.backend.get(self._drawer_key(session_id)))
        return engine

    async def save(self, session_id: str, engine: CartEngine) -> None:
        ttl = self.config.session_ttl
        await self.backend.set(
            self._items_key(session_id),
            cart_items_adapter.dump_python(engine.items, mode="json"),
            ttl=ttl,
        )
        await self.backend.set(self._drawer_key(session_id), engine.is_cart_open, ttl=ttl)

    async def delete(self, session_id: str) -> None:
        await self.backend.delete(self._items_key(session_id))
        await self.backend.delete(self._drawer_key(session_id))
