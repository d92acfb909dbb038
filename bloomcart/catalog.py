"""Catalog entities and the cache-backed catalog repository."""

from collections.abc import Sequence
from logging import getLogger
from typing import Optional
from typing import Protocol
from typing import TypeVar

from pydantic import BaseModel
from pydantic import Field
from pydantic import TypeAdapter

from bloomcart.cache import ApiCache
from bloomcart.config import CacheConfig
from bloomcart.i18n import DEFAULT_LOCALE
from bloomcart.i18n import LOCALES

logger = getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Category(BaseModel):
    id: str
    name: str
    slug: str = ""
    description: str = ""


class Flower(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0, description="Price per stem")
    colors: list[str] = Field(default_factory=list)
    description: str = ""
    image: Optional[str] = None
    in_stock: bool = True


class Bouquet(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    description: str = ""
    category_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)
    featured: bool = False
    in_stock: bool = True
    image: Optional[str] = None

    @property
    def effective_price(self) -> float:
        """The price a shopper pays: discount price when one is set."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price


class CatalogRepository(Protocol):
    """Locale-aware catalog queries served by the hosted database."""

    async def get_bouquets(self, locale: str) -> list[Bouquet]: ...

    async def get_bouquet_by_id(self, id: str, locale: str) -> Optional[Bouquet]: ...

    async def get_bouquets_by_ids(
        self, ids: Sequence[str], locale: str
    ) -> list[Bouquet]: ...

    async def get_bouquets_by_category(
        self, category_id: str, locale: str
    ) -> list[Bouquet]: ...

    async def get_featured_bouquets(self, locale: str) -> list[Bouquet]: ...

    async def get_related_bouquets(
        self,
        bouquet_id: str,
        category_id: Optional[str],
        tag_ids: Optional[Sequence[str]],
        locale: str,
    ) -> list[Bouquet]: ...

    async def get_categories(self, locale: str) -> list[Category]: ...

    async def get_category_by_id(self, id: str, locale: str) -> Optional[Category]: ...

    async def get_flowers(self, locale: str) -> list[Flower]: ...

    async def get_flower_by_id(self, id: str, locale: str) -> Optional[Flower]: ...


def _as_list(model: type[M], value: object) -> list[M]:
    # The persistent tier hands back plain JSON, the memory tier the cached
    # instances themselves; callers always get their own copies.
    items = TypeAdapter(list[model]).validate_python(value)  # type: ignore[valid-type]
    return [item.model_copy(deep=True) for item in items]


def _as_model(model: type[M], value: object) -> Optional[M]:
    if value is None:
        return None
    return TypeAdapter(model).validate_python(value).model_copy(deep=True)


class CachedCatalogRepository:
    """Wraps a CatalogRepository so repeated reads are served from ApiCache."""

    def __init__(
        self,
        repository: CatalogRepository,
        cache: ApiCache,
        config: Optional[CacheConfig] = None,
        locales: Sequence[str] = LOCALES,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.config = config if config is not None else cache.config
        self.locales = tuple(locales)

    async def get_bouquets(self, locale: str = DEFAULT_LOCALE) -> list[Bouquet]:
        result = await self.cache.get_or_fetch(
            f"bouquets:{locale}",
            lambda: self.repository.get_bouquets(locale),
            self.config.bouquets,
        )
        return _as_list(Bouquet, result)

    async def get_bouquet_by_id(
        self, id: str, locale: str = DEFAULT_LOCALE
    ) -> Optional[Bouquet]:
        result = await self.cache.get_or_fetch(
            f"bouquet:{id}:{locale}",
            lambda: self.repository.get_bouquet_by_id(id, locale),
            self.config.bouquet_details,
        )
        return _as_model(Bouquet, result)

    async def get_bouquets_by_ids(
        self, ids: Sequence[str], locale: str = DEFAULT_LOCALE
    ) -> list[Bouquet]:
        """Live lookup for current prices, never cached."""
        if not ids:
            return []
        return await self.repository.get_bouquets_by_ids(list(ids), locale)

    async def get_bouquets_by_category(
        self, category_id: str, locale: str = DEFAULT_LOCALE
    ) -> list[Bouquet]:
        result = await self.cache.get_or_fetch(
            f"bouquets:category:{category_id}:{locale}",
            lambda: self.repository.get_bouquets_by_category(category_id, locale),
            self.config.bouquets,
        )
        return _as_list(Bouquet, result)

    async def get_featured_bouquets(self, locale: str = DEFAULT_LOCALE) -> list[Bouquet]:
        result = await self.cache.get_or_fetch(
            f"bouquets:featured:{locale}",
            lambda: self.repository.get_featured_bouquets(locale),
            self.config.featured_bouquets,
        )
        return _as_list(Bouquet, result)

    async def get_related_bouquets(
        self,
        bouquet_id: str,
        category_id: Optional[str] = None,
        tag_ids: Optional[Sequence[str]] = None,
        locale: str = DEFAULT_LOCALE,
    ) -> list[Bouquet]:
        tags_key = ",".join(tag_ids) if tag_ids else "none"
        result = await self.cache.get_or_fetch(
            f"bouquets:related:{bouquet_id}:{category_id or 'none'}:{tags_key}:{locale}",
            lambda: self.repository.get_related_bouquets(
                bouquet_id, category_id, tag_ids, locale
            ),
            self.config.bouquets,
        )
        return _as_list(Bouquet, result)

    async def get_categories(self, locale: str = DEFAULT_LOCALE) -> list[Category]:
        result = await self.cache.get_or_fetch(
            f"categories:{locale}",
            lambda: self.repository.get_categories(locale),
            self.config.categories,
        )
        return _as_list(Category, result)

    async def get_category_by_id(
        self, id: str, locale: str = DEFAULT_LOCALE
    ) -> Optional[Category]:
        result = await self.cache.get_or_fetch(
            f"category:{id}:{locale}",
            lambda: self.repository.get_category_by_id(id, locale),
            self.config.categories,
        )
        return _as_model(Category, result)

    async def get_flowers(self, locale: str = DEFAULT_LOCALE) -> list[Flower]:
        result = await self.cache.get_or_fetch(
            f"flowers:{locale}",
            lambda: self.repository.get_flowers(locale),
            self.config.flowers,
        )
        return _as_list(Flower, result)

    async def get_flower_by_id(
        self, id: str, locale: str = DEFAULT_LOCALE
    ) -> Optional[Flower]:
        result = await self.cache.get_or_fetch(
            f"flower:{id}:{locale}",
            lambda: self.repository.get_flower_by_id(id, locale),
            self.config.flowers,
        )
        return _as_model(Flower, result)

    # Write-path invalidation, called after an admin edit

    async def invalidate_bouquet(self, bouquet_id: str) -> int:
        """Drop a bouquet's detail keys and every list that may embed it.

        Category, featured and related listings all live under ``bouquets:``.
        """
        keys = [f"bouquet:{bouquet_id}:{locale}" for locale in self.locales]
        removed = await self.cache.invalidate_keys(keys)
        removed += await self.cache.invalidate_pattern("bouquets:*")
        logger.info("Invalidated bouquet %s (%d entries)", bouquet_id, removed)
        return removed

    async def invalidate_category(self, category_id: str) -> int:
        keys = [f"category:{category_id}:{locale}" for locale in self.locales]
        removed = await self.cache.invalidate_keys(keys)
        removed += await self.cache.invalidate_pattern("categories:*")
        removed += await self.cache.invalidate_pattern(
            f"bouquets:category:{category_id}:*"
        )
        logger.info("Invalidated category %s (%d entries)", category_id, removed)
        return removed

    async def invalidate_flower(self, flower_id: str) -> int:
        keys = [f"flower:{flower_id}:{locale}" for locale in self.locales]
        removed = await self.cache.invalidate_keys(keys)
        removed += await self.cache.invalidate_pattern("flowers:*")
        logger.info("Invalidated flower %s (%d entries)", flower_id, removed)
        return removed
