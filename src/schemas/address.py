"""Saved address book schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.order import ShippingAddressCreate


class SavedAddressCreate(ShippingAddressCreate):
    """Request body for POST /users/addresses."""

    is_default: bool = Field(default=False, description="Use this address by default")


class SavedAddressUpdate(BaseModel):
    """Partial update of a saved address. Only supplied fields change."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    address_line1: str | None = Field(default=None, min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    state: str | None = Field(default=None, min_length=1, max_length=100)
    zip_code: str | None = Field(default=None, min_length=1, max_length=20)
    country: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, min_length=1, max_length=20)
    is_default: bool | None = None


class SavedAddressResponse(BaseModel):
    """A saved address."""

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
    is_default: bool
    created_at: datetime
    updated_at: datetime
