"""Cart state container and its derived totals."""

from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from logging import getLogger
from typing import Optional

from .models import CartItem
from .models import CartSnapshot
from .models import CartTotals
from .models import CatalogCartItem
from .models import CustomBouquet
from .models import CustomBouquetCartItem
from .models import FlowerSelection

logger = getLogger(__name__)

DEFAULT_CUSTOM_BOUQUET_NAME = "Custom Bouquet"


def effective_price(item: CartItem, live_prices: Optional[Mapping[str, float]] = None) -> float:
    """Unit price used for display and totals.

    Catalog lines prefer the live catalog price and fall back to the price
    stored on the line. The stored price is never modified.
    """
    if live_prices and isinstance(item, CatalogCartItem):
        live = live_prices.get(item.bouquet_id)
        if live is not None:
            return live
    return item.price


def count_items(items: Iterable[CartItem]) -> int:
    # a custom bouquet counts as one purchasable unit per line quantity
    return sum(item.quantity for item in items)


def sum_price(
    items: Iterable[CartItem], live_prices: Optional[Mapping[str, float]] = None
) -> float:
    return sum(effective_price(item, live_prices) * item.quantity for item in items)


class CartEngine:
    """One shopper's cart: ordered lines plus the drawer's open state.

    Mutations are synchronous and never fail; unknown line ids are ignored.
    Totals are always derived from ``items``.
    """

    def __init__(self, items: Optional[Iterable[CartItem]] = None) -> None:
        self.items: list[CartItem] = list(items) if items is not None else []
        self.is_cart_open = False

    def __len__(self) -> int:
        return len(self.items)

    def get_item(self, item_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_product(self, bouquet_id: str) -> Optional[CatalogCartItem]:
        for item in self.items:
            if isinstance(item, CatalogCartItem) and item.bouquet_id == bouquet_id:
                return item
        return None

    def add_product(self, bouquet_id: str, price: float, quantity: int = 1) -> CartItem:
        """Add a catalog bouquet, merging into an existing line for it."""
        existing = self.find_product(bouquet_id)
        if existing is not None:
            existing.quantity += max(quantity, 1)
            logger.debug("Bouquet %s quantity -> %d", bouquet_id, existing.quantity)
            return existing

        item = CatalogCartItem(bouquet_id=bouquet_id, quantity=max(quantity, 1), price=price)
        self.items.append(item)
        logger.debug("Added bouquet %s as line %s", bouquet_id, item.id)
        return item

    def add_custom_bouquet(
        self,
        flowers: Sequence[FlowerSelection],
        unit_prices: Mapping[str, float],
        based_on: Optional[str] = None,
        name: Optional[str] = None,
    ) -> CartItem:
        """Append a custom bouquet line priced from per-stem flower prices.

        Flowers missing from ``unit_prices`` contribute nothing to the price.
        """
        price = sum(unit_prices.get(f.flower_id, 0) * f.quantity for f in flowers)
        item = CustomBouquetCartItem(
            custom_bouquet=CustomBouquet(
                name=name or DEFAULT_CUSTOM_BOUQUET_NAME,
                based_on=based_on,
                flowers=list(flowers),
            ),
            price=price,
        )
        self.items.append(item)
        logger.debug("Added custom bouquet line %s at %s", item.id, price)
        return item

    def remove_item(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]

    def update_item_quantity(self, item_id: str, quantity: int) -> None:
        """Set a line's quantity; anything below one removes the line."""
        if quantity < 1:
            self.remove_item(item_id)
            return
        item = self.get_item(item_id)
        if item is not None:
            item.quantity = quantity

    def clear_cart(self) -> None:
        self.items = []

    def open_cart(self) -> None:
        self.is_cart_open = True

    def close_cart(self) -> None:
        self.is_cart_open = False

    @property
    def total_items(self) -> int:
        return count_items(self.items)

    def total_price(self, live_prices: Optional[Mapping[str, float]] = None) -> float:
        return sum_price(self.items, live_prices)

    def totals(self, live_prices: Optional[Mapping[str, float]] = None) -> CartTotals:
        return CartTotals(
            total_items=self.total_items,
            total_price=self.total_price(live_prices),
        )

    def snapshot(self, live_prices: Optional[Mapping[str, float]] = None) -> CartSnapshot:
        """Copy of the current lines with totals computed from the same state."""
        return CartSnapshot(
            items=[item.model_copy(deep=True) for item in self.items],
            totals=self.totals(live_prices),
        )
