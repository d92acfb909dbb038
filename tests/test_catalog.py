"""Tests for the cache-backed catalog repository."""

import pytest

from bloomcart.backends.memory import MemoryBackend
from bloomcart.cache import ApiCache
from bloomcart.catalog import Bouquet
from bloomcart.catalog import CachedCatalogRepository


def test_bouquet_effective_price():
    assert Bouquet(id="1", name="A", price=300).effective_price == 300
    assert Bouquet(id="1", name="A", price=300, discount_price=270).effective_price == 270
    assert Bouquet(id="1", name="A", price=300, discount_price=0).effective_price == 0


@pytest.mark.asyncio
async def test_repeated_reads_hit_the_cache(catalog: CachedCatalogRepository, repository):
    first = await catalog.get_bouquets("en")
    second = await catalog.get_bouquets("en")

    assert [b.id for b in first] == [b.id for b in second]
    assert repository.calls.count("get_bouquets") == 1


@pytest.mark.asyncio
async def test_locales_are_cached_separately(catalog: CachedCatalogRepository, repository):
    await catalog.get_categories("en")
    await catalog.get_categories("uk")

    assert repository.calls.count("get_categories") == 2
    keys = await catalog.cache.memory.get_all_keys()
    assert {"categories:en", "categories:uk"} <= set(keys)


@pytest.mark.asyncio
async def test_cache_keys(catalog: CachedCatalogRepository):
    await catalog.get_bouquet_by_id("rose-bouquet", "en")
    await catalog.get_bouquets_by_category("9", "en")
    await catalog.get_featured_bouquets("en")
    await catalog.get_related_bouquets("rose-bouquet", "9", ["a", "b"], "en")
    await catalog.get_related_bouquets("rose-bouquet", locale="pl")
    await catalog.get_category_by_id("9", "en")
    await catalog.get_flowers("en")
    await catalog.get_flower_by_id("tulip", "en")

    assert set(await catalog.cache.memory.get_all_keys()) == {
        "bouquet:rose-bouquet:en",
        "bouquets:category:9:en",
        "bouquets:featured:en",
        "bouquets:related:rose-bouquet:9:a,b:en",
        "bouquets:related:rose-bouquet:none:none:pl",
        "category:9:en",
        "flowers:en",
        "flower:tulip:en",
    }


@pytest.mark.asyncio
async def test_ttl_tiers(catalog: CachedCatalogRepository, repository, clock):
    await catalog.get_bouquets("en")  # 60 minutes
    await catalog.get_bouquet_by_id("rose-bouquet", "en")  # 120 minutes
    await catalog.get_flowers("en")  # 1440 minutes

    clock.advance(61 * 60)
    await catalog.get_bouquets("en")
    await catalog.get_bouquet_by_id("rose-bouquet", "en")
    await catalog.get_flowers("en")

    assert repository.calls.count("get_bouquets") == 2
    assert repository.calls.count("get_bouquet_by_id") == 1
    assert repository.calls.count("get_flowers") == 1

    clock.advance(60 * 60)
    await catalog.get_bouquet_by_id("rose-bouquet", "en")
    assert repository.calls.count("get_bouquet_by_id") == 2


@pytest.mark.asyncio
async def test_missing_detail_is_not_cached(catalog: CachedCatalogRepository, repository):
    assert await catalog.get_bouquet_by_id("nope", "en") is None
    assert await catalog.get_bouquet_by_id("nope", "en") is None

    assert repository.calls.count("get_bouquet_by_id") == 2


@pytest.mark.asyncio
async def test_bouquets_by_ids_is_never_cached(catalog: CachedCatalogRepository, repository):
    await catalog.get_bouquets_by_ids(["rose-bouquet"], "en")
    await catalog.get_bouquets_by_ids(["rose-bouquet"], "en")

    assert repository.calls.count("get_bouquets_by_ids") == 2
    assert await catalog.get_bouquets_by_ids([], "en") == []
    assert repository.calls.count("get_bouquets_by_ids") == 2


@pytest.mark.asyncio
async def test_fetch_failure_propagates(catalog: CachedCatalogRepository, repository):
    repository.fail = True

    with pytest.raises(ConnectionError):
        await catalog.get_flowers("en")


@pytest.mark.asyncio
async def test_results_from_persistent_tier_are_models(repository, clock):
    cache = ApiCache(
        memory=MemoryBackend(timer=clock),
        persistent=MemoryBackend(timer=clock),
    )
    cache.config.default_storage = "persistent"
    catalog = CachedCatalogRepository(repository, cache)
    await cache.set(
        "bouquets:en",
        [{"id": "x", "name": "Stored", "price": 10}],
        storage_type="persistent",
    )

    bouquets = await catalog.get_bouquets("en")

    assert isinstance(bouquets[0], Bouquet)
    assert bouquets[0].name == "Stored"
    assert repository.calls == []


@pytest.mark.asyncio
async def test_invalidate_bouquet(catalog: CachedCatalogRepository, repository):
    await catalog.get_bouquets("en")
    await catalog.get_bouquets("uk")
    await catalog.get_bouquet_by_id("rose-bouquet", "en")
    await catalog.get_bouquet_by_id("rose-bouquet", "pl")
    await catalog.get_featured_bouquets("en")
    await catalog.get_categories("en")
    await catalog.get_bouquets_by_category("9", "en")

    removed = await catalog.invalidate_bouquet("rose-bouquet")

    assert removed == 6
    assert set(await catalog.cache.memory.get_all_keys()) == {"categories:en"}


@pytest.mark.asyncio
async def test_invalidate_category(catalog: CachedCatalogRepository):
    await catalog.get_category_by_id("9", "en")
    await catalog.get_categories("en")
    await catalog.get_bouquets_by_category("9", "en")
    await catalog.get_flowers("en")

    removed = await catalog.invalidate_category("9")

    assert removed == 3
    assert await catalog.cache.memory.get_all_keys() == ["flowers:en"]


@pytest.mark.asyncio
async def test_invalidate_flower(catalog: CachedCatalogRepository, repository):
    await catalog.get_flower_by_id("tulip", "en")
    await catalog.get_flowers("en")
    await catalog.get_flowers("uk")

    assert await catalog.invalidate_flower("tulip") == 3

    repository.flowers["tulip"] = repository.flowers["tulip"].model_copy(
        update={"price": 25}
    )
    assert (await catalog.get_flower_by_id("tulip", "en")).price == 25


@pytest.mark.asyncio
async def test_returned_models_do_not_alias_cache(catalog: CachedCatalogRepository):
    bouquet = await catalog.get_bouquet_by_id("rose-bouquet", "en")
    bouquet.price = 1
    listed = await catalog.get_bouquets("en")
    listed[0].tag_ids.append("sale")

    assert (await catalog.get_bouquet_by_id("rose-bouquet", "en")).price == 250
    assert (await catalog.get_bouquets("en"))[0].tag_ids == []
