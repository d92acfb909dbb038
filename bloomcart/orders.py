"""Checkout handoff to the order submission collaborator."""

from logging import getLogger
from typing import Any
from typing import Protocol

from pydantic import BaseModel
from pydantic import Field

from bloomcart.cart.models import CartItem
from bloomcart.cart.models import CartTotals
from bloomcart.cart.service import CartService
from bloomcart.exceptions import EmptyCartError
from bloomcart.exceptions import OrderSubmissionError
from bloomcart.i18n import DEFAULT_LOCALE

logger = getLogger(__name__)


class OrderSnapshot(BaseModel):
    form_data: dict[str, Any] = Field(default_factory=dict)
    items: list[CartItem]
    totals: CartTotals
    locale: str = DEFAULT_LOCALE


class OrderSubmitter(Protocol):
    """Persists an order and sends the shop's notifications.

    Returns the new order's id.
    """

    async def submit(self, snapshot: OrderSnapshot) -> str: ...


async def checkout(
    service: CartService,
    submitter: OrderSubmitter,
    session_id: str,
    form_data: dict[str, Any],
    locale: str = DEFAULT_LOCALE,
) -> tuple[str, OrderSnapshot]:
    """Submit the session's cart and clear it once the order is confirmed.

    Raises:
        OrderSubmissionError: If the cart is empty or the submitter fails;
            the cart is left untouched
    """
    async with service.session_lock(session_id):
        engine = await service.storage.load(session_id)
        if not engine.items:
            msg = "Cannot check out an empty cart"
            raise EmptyCartError(msg)

        live_prices = await service.refresh_live_prices(engine.items, locale)
        cart = engine.snapshot(live_prices)
        snapshot = OrderSnapshot(
            form_data=form_data,
            items=cart.items,
            totals=cart.totals,
            locale=locale,
        )

        try:
            order_id = await submitter.submit(snapshot)
        except OrderSubmissionError:
            raise
        except Exception as e:
            logger.exception("Order submission failed for session %s", session_id)
            msg = f"Order submission failed: {e}"
            raise OrderSubmissionError(msg) from e

        engine.clear_cart()
        await service.storage.save(session_id, engine)
    logger.info(
        "Order %s submitted: %d items, total %.2f",
        order_id,
        snapshot.totals.total_items,
        snapshot.totals.total_price,
    )
    return order_id, snapshot
