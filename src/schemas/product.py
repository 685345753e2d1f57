"""Product Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.common import PageInfo


class ProductBase(BaseModel):
    """Base product fields shared across schemas."""

    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: str | None = Field(default=None, description="Product description")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Current unit price")
    original_price: Decimal | None = Field(
        default=None, ge=0, max_digits=10, decimal_places=2, description="Price before discount"
    )
    image: str | None = Field(default=None, max_length=512, description="Product image URL")
    category_id: int | None = Field(default=None, description="Owning category")
    stock: int = Field(default=0, ge=0, description="Units available")
    featured: bool = Field(default=False)
    is_new: bool = Field(default=False)
    is_budget: bool = Field(default=False)
    is_luxury: bool = Field(default=False)


class ProductCreate(ProductBase):
    """Schema for creating a new product."""

    model_config = ConfigDict(extra="forbid")


class ProductUpdate(BaseModel):
    """Partial product update. Only supplied fields are written."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    original_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    image: str | None = Field(default=None, max_length=512)
    category_id: int | None = None
    stock: int | None = Field(default=None, ge=0)
    featured: bool | None = None
    is_new: bool | None = None
    is_budget: bool | None = None
    is_luxury: bool | None = None


class ProductResponse(ProductBase):
    """Schema for product API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Product unique identifier")
    category_name: str | None = Field(default=None, description="Owning category name")
    rating: Decimal = Field(default=Decimal("0"), description="Average review rating")
    reviews: int = Field(default=0, description="Number of reviews")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class ProductListResponse(PageInfo):
    """Paginated product listing."""

    products: list[ProductResponse] = Field(description="Products on this page")
