"""Storefront configuration settings."""

from typing import Literal

from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

from bloomcart.types import CACHE_KEY_PREFIX


class CacheConfig(BaseModel):
    """Catalog cache configuration settings."""

    key_prefix: str = Field(
        default=CACHE_KEY_PREFIX,
        description="Prefix for cache keys in durable storage",
    )
    default_storage: Literal["memory", "persistent"] = Field(
        default="memory",
        description="Storage tier used when a caller does not pick one",
    )
    default_ttl_minutes: int = Field(
        default=60,
        gt=0,
        description="Time-to-live in minutes for entries without a tier",
    )

    # TTL tiers, in minutes, by entity volatility
    bouquets: int = Field(
        default=60, gt=0, description="Bouquet listings TTL (default: 1 hour)"
    )
    bouquet_details: int = Field(
        default=120, gt=0, description="Single bouquet TTL (default: 2 hours)"
    )
    categories: int = Field(
        default=1440, gt=0, description="Category TTL (default: 24 hours)"
    )
    flowers: int = Field(default=1440, gt=0, description="Flower TTL (default: 24 hours)")
    featured_bouquets: int = Field(
        default=180, gt=0, description="Featured bouquets TTL (default: 3 hours)"
    )


class CartConfig(BaseModel):
    """Cart persistence and session settings."""

    storage_key: str = Field(
        default="flower_shop_cart",
        description="Namespace for persisted cart items",
    )
    session_ttl: int = Field(
        default=86400,
        gt=0,
        description="Cart session time-to-live in seconds (default: 1 day)",
    )
    open_delay: float = Field(
        default=0.3,
        ge=0.0,
        description="Seconds between the 'added' confirmation and opening the drawer",
    )

    # Cookie settings
    cookie_name: str = Field(default="cart_session", description="Cart cookie name")
    cookie_path: str = Field(default="/", description="Cookie path")
    cookie_secure: bool = Field(
        default=True,
        description="Whether cookie should only be sent over HTTPS",
    )
    cookie_httponly: bool = Field(
        default=True,
        description="Whether cookie should be inaccessible to JavaScript",
    )
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax",
        description="SameSite cookie attribute",
    )


class LocaleConfig(BaseModel):
    """Locale routing settings."""

    locales: tuple[str, ...] = Field(
        default=("en", "uk", "ru", "pl"),
        min_length=1,
        description="Supported locale codes",
    )
    default_locale: str = Field(default="en", description="Fallback locale")
    excluded_prefixes: tuple[str, ...] = Field(
        default=("/api", "/static", "/_health"),
        description="Path prefixes that are never redirected",
    )
    detect_locale: bool = Field(
        default=True,
        description="Whether to use Accept-Language when redirecting the root path",
    )

    @model_validator(mode="after")
    def _check_default_locale(self) -> "LocaleConfig":
        if self.default_locale not in self.locales:
            msg = f"default_locale {self.default_locale!r} is not in locales"
            raise ValueError(msg)
        return self
