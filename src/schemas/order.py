"""Order Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.common import PageInfo

PaymentMethod = Literal["card", "wallet", "cash_on_delivery"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
OrderStatus = Literal["processing", "shipped", "delivered", "cancelled"]

# Largest quantity accepted on a single order or cart line
MAX_LINE_QUANTITY = 10_000


class OrderItemCreate(BaseModel):
    """A single purchase line. The unit price is always taken from the catalog."""

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., gt=0, description="Product to purchase")
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY, description="Units to purchase")


class ShippingAddressCreate(BaseModel):
    """Shipping address supplied at checkout."""

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1, max_length=100)
    address_line1: str = Field(..., min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)


class OrderCreate(BaseModel):
    """Request body for POST /orders."""

    model_config = ConfigDict(extra="forbid")

    items: list[OrderItemCreate] = Field(..., description="Purchase lines")
    shipping_address: ShippingAddressCreate = Field(..., description="Where to ship the order")
    payment_method: PaymentMethod = Field(..., description="How the customer will pay")


class OrderStatusUpdate(BaseModel):
    """Request body for PUT /orders/{id}/status."""

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus = Field(..., description="New fulfillment status")


class ShippingAddressResponse(BaseModel):
    """Stored shipping address."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    zip_code: str
    country: str
    phone: str


class OrderItemResponse(BaseModel):
    """Order line with the price captured at purchase time."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal = Field(description="Unit price at the time of purchase")
    name: str | None = Field(default=None, description="Current product name")
    image: str | None = Field(default=None, description="Current product image URL")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Order unique identifier")
    order_number: str = Field(description="Human-readable order number")
    user_id: int = Field(description="Purchasing user")
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal
    payment_intent_id: str | None = None
    payment_session_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    shipping_address: ShippingAddressResponse | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OrderSummary(BaseModel):
    """Order row as listed in the admin order table."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: int
    customer_name: str | None = None
    customer_email: str | None = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    total: Decimal
    item_count: int = Field(default=0, description="Total units in the order")
    created_at: datetime


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    items: list[OrderResponse] = Field(description="List of orders")


class AdminOrderListResponse(PageInfo):
    """Paginated admin order listing."""

    orders: list[OrderSummary] = Field(description="Orders on this page")
