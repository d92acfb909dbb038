"""bloomcart: catalog caching and shopping cart core for a flower shop on FastAPI."""

from .cache import ApiCache as ApiCache
from .cache import CachedData as CachedData
from .cache import use_cached_data as use_cached_data
from .catalog import CachedCatalogRepository as CachedCatalogRepository
from .cart import CartEngine as CartEngine
from .cart import CartService as CartService
from .dependencies import setup_storefront as setup_storefront
from .middleware import LocaleRedirectMiddleware as LocaleRedirectMiddleware
from .routes import add_cart_routes as add_cart_routes
from .routes import add_routes as add_routes

__all__ = [
    "ApiCache",
    "CachedCatalogRepository",
    "CachedData",
    "CartEngine",
    "CartService",
    "LocaleRedirectMiddleware",
    "add_cart_routes",
    "add_routes",
    "setup_storefront",
    "use_cached_data",
]
