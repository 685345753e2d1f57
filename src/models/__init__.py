"""Database model type definitions."""

from src.models.order import Order, OrderItem, OrderLine, ShippingAddress
from src.models.product import Category, Product

__all__ = [
    "Order",
    "OrderItem",
    "OrderLine",
    "ShippingAddress",
    "Product",
    "Category",
]
