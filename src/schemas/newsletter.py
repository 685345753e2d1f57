"""Newsletter Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.schemas.common import PageInfo

SubscriberStatus = Literal["active", "unsubscribed"]
SubscriberSort = Literal["newest", "oldest", "email_asc", "email_desc"]


class SubscribeRequest(BaseModel):
    """Request body for POST /newsletter/subscribe."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    name: str | None = Field(default=None, max_length=100)
    source: str = Field(default="Website", max_length=50, description="Where the signup came from")


class UnsubscribeRequest(BaseModel):
    """Request body for POST /newsletter/unsubscribe."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class SubscriberResponse(BaseModel):
    """A newsletter subscriber."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    status: SubscriberStatus
    source: str
    subscribed_at: datetime


class SubscriberListResponse(PageInfo):
    """Paginated subscriber listing."""

    subscribers: list[SubscriberResponse]
