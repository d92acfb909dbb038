"""Wiring of the storefront objects into a FastAPI application."""

from dataclasses import dataclass
from logging import getLogger
from typing import Annotated
from typing import Optional

from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi import Response

from bloomcart.backends import BaseCacheBackend
from bloomcart.backends import MemoryBackend
from bloomcart.cache import ApiCache
from bloomcart.cart.service import CartService
from bloomcart.cart.storage import CartStorage
from bloomcart.cart.storage import new_session_id
from bloomcart.catalog import CachedCatalogRepository
from bloomcart.catalog import CatalogRepository
from bloomcart.config import CacheConfig
from bloomcart.config import CartConfig
from bloomcart.config import LocaleConfig
from bloomcart.exceptions import BackendNotFoundError
from bloomcart.exceptions import CacheError
from bloomcart.i18n import resolve_locale
from bloomcart.orders import OrderSubmitter

logger = getLogger(__name__)


@dataclass
class Storefront:
    """Every shared object a request handler needs, owned by one app."""

    cache: ApiCache
    catalog: CachedCatalogRepository
    cart: CartService
    cart_config: CartConfig
    locale_config: LocaleConfig
    order_submitter: Optional[OrderSubmitter] = None


def setup_storefront(
    app: FastAPI,
    repository: CatalogRepository,
    order_submitter: Optional[OrderSubmitter] = None,
    cache: Optional[ApiCache] = None,
    cart_backend: Optional[BaseCacheBackend] = None,
    cache_config: Optional[CacheConfig] = None,
    cart_config: Optional[CartConfig] = None,
    locale_config: Optional[LocaleConfig] = None,
) -> Storefront:
    """Build the storefront objects and attach them to ``app.state``."""
    cache_config = cache_config or (cache.config if cache else CacheConfig())
    cart_config = cart_config or CartConfig()
    locale_config = locale_config or LocaleConfig()
    cache = cache or ApiCache(config=cache_config)

    catalog = CachedCatalogRepository(
        repository, cache, cache_config, locales=locale_config.locales
    )
    if cart_backend is not None and cart_backend in (cache.memory, cache.persistent):
        msg = "The cart backend must not be one of the cache tiers."
        raise CacheError(msg)
    storage = CartStorage(
        cart_backend or MemoryBackend(), cart_config, cache_config.key_prefix
    )
    storefront = Storefront(
        cache=cache,
        catalog=catalog,
        cart=CartService(catalog, storage),
        cart_config=cart_config,
        locale_config=locale_config,
        order_submitter=order_submitter,
    )
    app.state.storefront = storefront
    logger.info(
        "Storefront configured with <%s> cart storage",
        storage.backend.__class__.__name__,
    )
    return storefront


def get_storefront(request: Request) -> Storefront:
    storefront: Optional[Storefront] = getattr(request.app.state, "storefront", None)
    if storefront is None:
        msg = "Storefront is not set up. Call setup_storefront(app, ...) first."
        raise BackendNotFoundError(msg)
    return storefront


def get_api_cache(storefront: Annotated[Storefront, Depends(get_storefront)]) -> ApiCache:
    return storefront.cache


def get_catalog(
    storefront: Annotated[Storefront, Depends(get_storefront)],
) -> CachedCatalogRepository:
    return storefront.catalog


def get_cart_service(
    storefront: Annotated[Storefront, Depends(get_storefront)],
) -> CartService:
    return storefront.cart


def get_locale(
    request: Request, storefront: Annotated[Storefront, Depends(get_storefront)]
) -> str:
    """Locale from the ``locale`` query parameter, falling back to the default."""
    config = storefront.locale_config
    return resolve_locale(
        request.query_params.get("locale"), config.locales, config.default_locale
    )


def get_cart_session_id(
    request: Request,
    response: Response,
    storefront: Annotated[Storefront, Depends(get_storefront)],
) -> str:
    """Read the cart session cookie, issuing a new one when absent."""
    config = storefront.cart_config
    session_id = request.cookies.get(config.cookie_name)
    if not session_id:
        session_id = new_session_id()
        response.set_cookie(
            key=config.cookie_name,
            value=session_id,
            max_age=config.session_ttl,
            path=config.cookie_path,
            secure=config.cookie_secure,
            httponly=config.cookie_httponly,
            samesite=config.cookie_samesite,
        )
    return session_id


ApiCacheDep = Annotated[ApiCache, Depends(get_api_cache)]
CatalogDep = Annotated[CachedCatalogRepository, Depends(get_catalog)]
CartServiceDep = Annotated[CartService, Depends(get_cart_service)]
CartSessionDep = Annotated[str, Depends(get_cart_session_id)]
LocaleDep = Annotated[str, Depends(get_locale)]
StorefrontDep = Annotated[Storefront, Depends(get_storefront)]
