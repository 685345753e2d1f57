"""Category Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.product import ProductListResponse


class CategoryCreate(BaseModel):
    """Schema for creating a category. The slug is derived from the name when omitted."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    slug: str | None = Field(default=None, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    image: str | None = Field(default=None, max_length=512)


class CategoryUpdate(BaseModel):
    """Partial category update."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    image: str | None = Field(default=None, max_length=512)


class CategoryResponse(BaseModel):
    """Schema for category API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    image: str | None = None
    product_count: int = Field(default=0, description="Products in this category")
    created_at: datetime
    updated_at: datetime


class CategoryProductsResponse(ProductListResponse):
    """Products of one category."""

    category: CategoryResponse
