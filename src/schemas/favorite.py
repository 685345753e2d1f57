"""Favorite Pydantic schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FavoriteAdd(BaseModel):
    """Request body for POST /favorites."""

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(..., gt=0)


class FavoriteResponse(BaseModel):
    """A favorited product."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    price: Decimal
    image: str | None = None
    created_at: datetime


class FavoriteCheckResponse(BaseModel):
    """Response for GET /favorites/check/{product_id}."""

    product_id: int
    is_favorite: bool
