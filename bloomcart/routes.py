"""HTTP routes for cache administration and the shopping cart."""

import time
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any
from typing import Optional

from fastapi import APIRouter
from fastapi import FastAPI
from fastapi import HTTPException
from pydantic import BaseModel
from pydantic import Field

from bloomcart.backends import BaseCacheBackend
from bloomcart.cart.engine import CartEngine
from bloomcart.cart.engine import effective_price
from bloomcart.cart.models import CartItem
from bloomcart.cart.models import FlowerSelection
from bloomcart.cart.service import CartService
from bloomcart.dependencies import ApiCacheDep
from bloomcart.dependencies import CartServiceDep
from bloomcart.dependencies import CartSessionDep
from bloomcart.dependencies import LocaleDep
from bloomcart.dependencies import StorefrontDep
from bloomcart.exceptions import CartItemNotFoundError
from bloomcart.exceptions import CatalogEntityNotFoundError
from bloomcart.exceptions import EmptyCartError
from bloomcart.exceptions import OrderSubmissionError
from bloomcart.i18n import format_price
from bloomcart.orders import checkout


# Cache administration


class InvalidateRequest(BaseModel):
    keys: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)


async def _describe_entries(backend: BaseCacheBackend, tier: str) -> list[dict]:
    # Validity is judged by the same clock the backend expires entries with
    now = getattr(backend, "timer", time.time)()
    data = await backend.get_cache_data()
    return [
        {
            "key": key,
            "tier": tier,
            "valid": entry.is_valid(now),
            "expires_at": None if entry.expires_at == float("inf") else entry.expires_at,
        }
        for key, entry in sorted(data.items())
    ]


def add_routes(
    app: FastAPI,
    prefix: str = "/api",
    dependencies: Optional[Sequence[Any]] = None,
) -> None:
    """Add cache inspection and invalidation routes to the app.

    Authorization is left to the caller through ``dependencies``.
    """
    router = APIRouter(
        prefix=f"{prefix}/cache",
        tags=["cache"],
        dependencies=list(dependencies or []),
    )

    @router.get("/entries")
    async def get_cache_entries(cache: ApiCacheDep) -> dict[str, Any]:
        entries = await _describe_entries(cache.memory, "memory")
        if cache.persistent is not None:
            entries += await _describe_entries(cache.persistent, "persistent")
        valid = sum(1 for e in entries if e["valid"])
        return {
            "entries": entries,
            "total_entries": len(entries),
            "valid_entries": valid,
            "expired_entries": len(entries) - valid,
        }

    @router.post("/invalidate")
    async def invalidate_cache(
        body: InvalidateRequest, cache: ApiCacheDep
    ) -> dict[str, Any]:
        results: list[dict[str, Any]] = []
        if body.keys:
            removed = await cache.invalidate_keys(body.keys)
            results.append({"type": "keys", "count": len(body.keys), "removed": removed})
        for pattern in body.patterns:
            removed = await cache.invalidate_pattern(pattern)
            results.append({"type": "pattern", "pattern": pattern, "removed": removed})
        return {"success": True, "results": results}

    app.include_router(router)


# Cart


class AddProductRequest(BaseModel):
    bouquet_id: str
    quantity: int = Field(default=1, ge=1)


class AddCustomBouquetRequest(BaseModel):
    flowers: list[FlowerSelection] = Field(min_length=1)
    based_on: Optional[str] = None
    name: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int


class CheckoutRequest(BaseModel):
    form_data: dict[str, Any] = Field(default_factory=dict)


class CartLine(BaseModel):
    item: CartItem
    unit_price: float
    line_total: float


class CartResponse(BaseModel):
    items: list[CartLine]
    total_items: int
    total_price: float
    formatted_total: str
    is_cart_open: bool
    open_delay: float = Field(
        default=0.0,
        description="Seconds the client waits before opening the drawer after an add",
    )


def render_cart(
    engine: CartEngine,
    live_prices: Mapping[str, float],
    locale: str,
    open_delay: float = 0.0,
) -> CartResponse:
    lines = []
    for item in engine.items:
        unit_price = effective_price(item, live_prices)
        lines.append(
            CartLine(item=item, unit_price=unit_price, line_total=unit_price * item.quantity)
        )
    total_price = engine.total_price(live_prices)
    return CartResponse(
        items=lines,
        total_items=engine.total_items,
        total_price=total_price,
        formatted_total=format_price(total_price, locale),
        is_cart_open=engine.is_cart_open,
        open_delay=open_delay,
    )


def add_cart_routes(app: FastAPI, prefix: str = "/api") -> None:
    """Add the cart routes, keyed by the cart session cookie."""
    router = APIRouter(prefix=f"{prefix}/cart", tags=["cart"])

    async def respond(
        service: CartService,
        engine: CartEngine,
        locale: str,
        open_delay: float = 0.0,
    ) -> CartResponse:
        live_prices = await service.refresh_live_prices(engine.items, locale)
        return render_cart(engine, live_prices, locale, open_delay)

    @router.get("")
    async def get_cart(
        service: CartServiceDep, session_id: CartSessionDep, locale: LocaleDep
    ) -> CartResponse:
        return await respond(service, await service.get_cart(session_id), locale)

    @router.post("/items")
    async def add_product(
        body: AddProductRequest,
        storefront: StorefrontDep,
        session_id: CartSessionDep,
        locale: LocaleDep,
    ) -> CartResponse:
        service = storefront.cart
        try:
            engine = await service.add_product(
                session_id, body.bouquet_id, body.quantity, locale
            )
        except CatalogEntityNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        return await respond(
            service, engine, locale, storefront.cart_config.open_delay
        )

    @router.post("/custom-bouquets")
    async def add_custom_bouquet(
        body: AddCustomBouquetRequest,
        storefront: StorefrontDep,
        session_id: CartSessionDep,
        locale: LocaleDep,
    ) -> CartResponse:
        service = storefront.cart
        engine = await service.add_custom_bouquet(
            session_id, body.flowers, body.based_on, body.name, locale
        )
        return await respond(
            service, engine, locale, storefront.cart_config.open_delay
        )

    @router.patch("/items/{item_id}")
    async def update_item_quantity(
        item_id: str,
        body: UpdateQuantityRequest,
        service: CartServiceDep,
        session_id: CartSessionDep,
        locale: LocaleDep,
    ) -> CartResponse:
        engine = await service.get_cart(session_id)
        if engine.get_item(item_id) is None:
            raise HTTPException(
                status_code=404, detail=str(CartItemNotFoundError(item_id))
            )
        engine = await service.update_item_quantity(session_id, item_id, body.quantity)
        return await respond(service, engine, locale)

    @router.delete("/items/{item_id}")
    async def remove_item(
        item_id: str,
        service: CartServiceDep,
        session_id: CartSessionDep,
        locale: LocaleDep,
    ) -> CartResponse:
        engine = await service.remove_item(session_id, item_id)
        return await respond(service, engine, locale)

    @router.delete("")
    async def clear_cart(
        service: CartServiceDep, session_id: CartSessionDep, locale: LocaleDep
    ) -> CartResponse:
        return await respond(service, await service.clear_cart(session_id), locale)

    @router.post("/open")
    async def open_cart(
        service: CartServiceDep, session_id: CartSessionDep, locale: LocaleDep
    ) -> CartResponse:
        return await respond(service, await service.open_cart(session_id), locale)

    @router.post("/close")
    async def close_cart(
        service: CartServiceDep, session_id: CartSessionDep, locale: LocaleDep
    ) -> CartResponse:
        return await respond(service, await service.close_cart(session_id), locale)

    @router.post("/checkout")
    async def submit_order(
        body: CheckoutRequest,
        storefront: StorefrontDep,
        session_id: CartSessionDep,
        locale: LocaleDep,
    ) -> dict[str, Any]:
        if storefront.order_submitter is None:
            raise HTTPException(status_code=503, detail="Order submission is not configured")
        try:
            order_id, snapshot = await checkout(
                storefront.cart,
                storefront.order_submitter,
                session_id,
                body.form_data,
                locale,
            )
        except EmptyCartError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except OrderSubmissionError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return {"order_id": order_id, "totals": snapshot.totals.model_dump()}

    app.include_router(router)


__all__ = ["add_cart_routes", "add_routes", "render_cart"]
