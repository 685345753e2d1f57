"""Cart Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.order import MAX_LINE_QUANTITY


class CartItemAdd(BaseModel):
    """Request body for POST /cart."""

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, gt=0, le=MAX_LINE_QUANTITY)


class CartItemUpdate(BaseModel):
    """Request body for PUT /cart/{item_id}."""

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(..., ge=1, le=MAX_LINE_QUANTITY)


class CartItemResponse(BaseModel):
    """Cart line joined with the product's current details."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    name: str
    price: Decimal = Field(description="Current unit price")
    image: str | None = None
    stock: int = Field(description="Units currently available")


class CartResponse(BaseModel):
    """The caller's cart."""

    items: list[CartItemResponse] = Field(default_factory=list)
    item_count: int = Field(default=0, description="Total units in the cart")
    subtotal: Decimal = Field(default=Decimal("0.00"), description="Sum of quantity times current price")
