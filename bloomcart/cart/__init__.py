"""Shopping cart engine, persistence and service."""

from .engine import CartEngine
from .engine import effective_price
from .models import CartItem
from .models import CartSnapshot
from .models import CartTotals
from .models import CatalogCartItem
from .models import CustomBouquet
from .models import CustomBouquetCartItem
from .models import FlowerSelection
from .service import CartService
from .storage import CartStorage

__all__ = [
    "CartEngine",
    "CartItem",
    "CartService",
    "CartSnapshot",
    "CartStorage",
    "CartTotals",
    "CatalogCartItem",
    "CustomBouquet",
    "CustomBouquetCartItem",
    "FlowerSelection",
    "effective_price",
]
