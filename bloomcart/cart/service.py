"""Async cart facade: price resolution, persistence and live-price refresh."""

import asyncio
from collections.abc import AsyncIterator
from collections.abc import Iterable
from collections.abc import Sequence
from contextlib import asynccontextmanager
from logging import getLogger
from typing import Optional

from bloomcart.catalog import CachedCatalogRepository
from bloomcart.exceptions import CatalogEntityNotFoundError
from bloomcart.i18n import DEFAULT_LOCALE

from .engine import CartEngine
from .models import CartItem
from .models import CatalogCartItem
from .models import FlowerSelection
from .storage import CartStorage

logger = getLogger(__name__)


class CartService:
    """Loads a session's cart, applies one mutation and saves it back.

    Mutations of one session are serialized, so interleaved requests on the
    same cart cannot overwrite each other's changes.
    """

    def __init__(self, catalog: CachedCatalogRepository, storage: CartStorage) -> None:
        self.catalog = catalog
        self.storage = storage
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def session_lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's cart lock; unused locks are dropped on release."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def get_cart(self, session_id: str) -> CartEngine:
        return await self.storage.load(session_id)

    async def add_product(
        self,
        session_id: str,
        bouquet_id: str,
        quantity: int = 1,
        locale: str = DEFAULT_LOCALE,
        open_cart: bool = True,
    ) -> CartEngine:
        """Add a bouquet at its current catalog price.

        Raises:
            CatalogEntityNotFoundError: If the bouquet does not exist
        """
        bouquet = await self.catalog.get_bouquet_by_id(bouquet_id, locale)
        if bouquet is None:
            msg = f"Bouquet {bouquet_id!r} not found"
            raise CatalogEntityNotFoundError(msg)

        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.add_product(bouquet.id, bouquet.effective_price, quantity)
            if open_cart:
                engine.open_cart()
            await self.storage.save(session_id, engine)
        return engine

    async def add_custom_bouquet(
        self,
        session_id: str,
        flowers: Sequence[FlowerSelection],
        based_on: Optional[str] = None,
        name: Optional[str] = None,
        locale: str = DEFAULT_LOCALE,
        open_cart: bool = True,
    ) -> CartEngine:
        """Add a custom bouquet priced against the flower catalog right now."""
        catalog_flowers = {f.id: f for f in await self.catalog.get_flowers(locale)}
        unit_prices = {flower_id: f.price for flower_id, f in catalog_flowers.items()}
        selections = [
            s.model_copy(update={"flower_name": catalog_flowers[s.flower_id].name})
            if not s.flower_name and s.flower_id in catalog_flowers
            else s
            for s in flowers
        ]

        if not name and based_on is not None:
            base = await self.catalog.get_bouquet_by_id(based_on, locale)
            if base is not None:
                name = f"Custom {base.name}"

        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.add_custom_bouquet(selections, unit_prices, based_on=based_on, name=name)
            if open_cart:
                engine.open_cart()
            await self.storage.save(session_id, engine)
        return engine

    async def update_item_quantity(
        self, session_id: str, item_id: str, quantity: int
    ) -> CartEngine:
        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.update_item_quantity(item_id, quantity)
            await self.storage.save(session_id, engine)
        return engine

    async def remove_item(self, session_id: str, item_id: str) -> CartEngine:
        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.remove_item(item_id)
            await self.storage.save(session_id, engine)
        return engine

    async def clear_cart(self, session_id: str) -> CartEngine:
        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.clear_cart()
            await self.storage.save(session_id, engine)
        return engine

    async def open_cart(self, session_id: str) -> CartEngine:
        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.open_cart()
            await self.storage.save(session_id, engine)
        return engine

    async def close_cart(self, session_id: str) -> CartEngine:
        async with self.session_lock(session_id):
            engine = await self.storage.load(session_id)
            engine.close_cart()
            await self.storage.save(session_id, engine)
        return engine

    async def delete_cart(self, session_id: str) -> None:
        """Remove everything stored for the session."""
        async with self.session_lock(session_id):
            await self.storage.delete(session_id)

    async def refresh_live_prices(
        self, items: Iterable[CartItem], locale: str = DEFAULT_LOCALE
    ) -> dict[str, float]:
        """Current prices for every catalog line, keyed by bouquet id.

        A failed lookup returns an empty map so totals fall back to stored
        prices.
        """
        ids = sorted({i.bouquet_id for i in items if isinstance(i, CatalogCartItem)})
        if not ids:
            return {}
        try:
            bouquets = await self.catalog.get_bouquets_by_ids(ids, locale)
        except Exception:
            logger.warning("Live price refresh failed for %s", ids, exc_info=True)
            return {}
        return {b.id: b.effective_price for b in bouquets}
