"""Product model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict


class Product(TypedDict):
    """Product table row representation.

    category_name is joined in from categories when listing.
    """

    id: int
    name: str
    description: str | None
    price: Decimal
    original_price: Decimal | None
    image: str | None
    category_id: int | None
    category_name: str | None
    stock: int
    rating: Decimal
    reviews: int
    featured: bool
    is_new: bool
    is_budget: bool
    is_luxury: bool
    created_at: datetime
    updated_at: datetime


class Category(TypedDict):
    """categories table row representation."""

    id: int
    name: str
    slug: str
    description: str | None
    image: str | None
    created_at: datetime
    updated_at: datetime
