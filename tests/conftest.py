from collections.abc import Sequence
from typing import Optional

import pytest

from bloomcart.backends.memory import MemoryBackend
from bloomcart.cache import ApiCache
from bloomcart.cart.service import CartService
from bloomcart.cart.storage import CartStorage
from bloomcart.catalog import Bouquet
from bloomcart.catalog import CachedCatalogRepository
from bloomcart.catalog import Category
from bloomcart.catalog import Flower


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryCatalogRepository:
    """Catalog collaborator backed by dicts, recording every call."""

    def __init__(self) -> None:
        self.bouquets: dict[str, Bouquet] = {
            "rose-bouquet": Bouquet(
                id="rose-bouquet", name="Rose Bouquet", price=250, category_id="9"
            ),
            "tulip-bouquet": Bouquet(
                id="tulip-bouquet",
                name="Tulip Bouquet",
                price=300,
                discount_price=270,
                category_id="9",
                featured=True,
            ),
        }
        self.categories: dict[str, Category] = {
            "9": Category(id="9", name="Classic", slug="classic"),
        }
        self.flowers: dict[str, Flower] = {
            "tulip": Flower(id="tulip", name="Tulip", price=20, colors=["red", "white"]),
            "rose": Flower(id="rose", name="Rose", price=35, colors=["red"]),
        }
        self.calls: list[str] = []
        self.fail = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            msg = "database unavailable"
            raise ConnectionError(msg)

    async def get_bouquets(self, locale: str) -> list[Bouquet]:
        self._record("get_bouquets")
        return list(self.bouquets.values())

    async def get_bouquet_by_id(self, id: str, locale: str) -> Optional[Bouquet]:
        self._record("get_bouquet_by_id")
        return self.bouquets.get(id)

    async def get_bouquets_by_ids(
        self, ids: Sequence[str], locale: str
    ) -> list[Bouquet]:
        self._record("get_bouquets_by_ids")
        return [self.bouquets[i] for i in ids if i in self.bouquets]

    async def get_bouquets_by_category(
        self, category_id: str, locale: str
    ) -> list[Bouquet]:
        self._record("get_bouquets_by_category")
        return [b for b in self.bouquets.values() if b.category_id == category_id]

    async def get_featured_bouquets(self, locale: str) -> list[Bouquet]:
        self._record("get_featured_bouquets")
        return [b for b in self.bouquets.values() if b.featured]

    async def get_related_bouquets(self, bouquet_id, category_id, tag_ids, locale):
        self._record("get_related_bouquets")
        return [
            b
            for b in self.bouquets.values()
            if b.id != bouquet_id and b.category_id == category_id
        ]

    async def get_categories(self, locale: str) -> list[Category]:
        self._record("get_categories")
        return list(self.categories.values())

    async def get_category_by_id(self, id: str, locale: str) -> Optional[Category]:
        self._record("get_category_by_id")
        return self.categories.get(id)

    async def get_flowers(self, locale: str) -> list[Flower]:
        self._record("get_flowers")
        return list(self.flowers.values())

    async def get_flower_by_id(self, id: str, locale: str) -> Optional[Flower]:
        self._record("get_flower_by_id")
        return self.flowers.get(id)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(timer=clock)


@pytest.fixture
def api_cache(clock: FakeClock) -> ApiCache:
    return ApiCache(memory=MemoryBackend(timer=clock))


@pytest.fixture
def repository() -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository()


@pytest.fixture
def catalog(
    repository: InMemoryCatalogRepository, api_cache: ApiCache
) -> CachedCatalogRepository:
    return CachedCatalogRepository(repository, api_cache)


@pytest.fixture
def cart_storage(clock: FakeClock) -> CartStorage:
    return CartStorage(MemoryBackend(timer=clock))


@pytest.fixture
def cart_service(
    catalog: CachedCatalogRepository, cart_storage: CartStorage
) -> CartService:
    return CartService(catalog, cart_storage)
