"""Cart line models."""

import uuid
from typing import Annotated
from typing import Literal
from typing import Optional
from typing import Union

from pydantic import BaseModel
from pydantic import Field
from pydantic import TypeAdapter


def new_line_id() -> str:
    return str(uuid.uuid4())


class FlowerSelection(BaseModel):
    """One flower, color and stem count inside a custom bouquet."""

    flower_id: str
    quantity: int = Field(ge=1)
    color: str = ""
    flower_name: str = ""


class CustomBouquet(BaseModel):
    name: str
    based_on: Optional[str] = None
    flowers: list[FlowerSelection] = Field(default_factory=list)


class CatalogCartItem(BaseModel):
    """A line referencing a catalog bouquet. Lines merge by ``bouquet_id``."""

    kind: Literal["catalog"] = "catalog"
    id: str = Field(default_factory=new_line_id)
    bouquet_id: str
    quantity: int = Field(default=1, ge=1)
    price: float = Field(ge=0, description="Unit price when the line was added")


class CustomBouquetCartItem(BaseModel):
    """A build-your-own bouquet. Every addition is its own line."""

    kind: Literal["custom"] = "custom"
    id: str = Field(default_factory=new_line_id)
    custom_bouquet: CustomBouquet
    quantity: int = Field(default=1, ge=1)
    price: float = Field(ge=0, description="Sum of flower prices at add time")


CartItem = Annotated[
    Union[CatalogCartItem, CustomBouquetCartItem],
    Field(discriminator="kind"),
]

cart_items_adapter: TypeAdapter[list[CartItem]] = TypeAdapter(list[CartItem])


class CartTotals(BaseModel):
    total_items: int
    total_price: float


class CartSnapshot(BaseModel):
    """Consistent view of a cart handed to checkout."""

    items: list[CartItem]
    totals: CartTotals
