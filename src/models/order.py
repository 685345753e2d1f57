"""Order model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, TypedDict

# Enum values matching the orders table check constraints
PaymentMethod = Literal["card", "wallet", "cash_on_delivery"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
OrderStatus = Literal["processing", "shipped", "delivered", "cancelled"]


class ShippingAddress(TypedDict):
    """shipping_addresses table row representation."""

    id: int
    user_id: int
    full_name: str
    address_line1: str
    address_line2: str | None
    city: str
    state: str
    zip_code: str
    country: str
    phone: str
    created_at: datetime


class OrderItem(TypedDict):
    """order_items row joined with the product's display fields.

    price is the unit price captured when the order was placed.
    """

    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    name: str | None
    image: str | None


class Order(TypedDict):
    """Order table row representation, hydrated with address and items."""

    id: int
    order_number: str
    user_id: int
    shipping_address_id: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal
    payment_intent_id: str | None
    payment_session_id: str | None
    customer_name: str | None
    customer_email: str | None
    created_at: datetime
    updated_at: datetime
    shipping_address: ShippingAddress | None
    items: list[OrderItem]


class OrderLine(TypedDict):
    """A validated purchase line before it is written."""

    product_id: int
    quantity: int
