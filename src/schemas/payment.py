"""Payment Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.order import PaymentStatus


class PaymentSessionCreate(BaseModel):
    """Request body for POST /payments/create-session."""

    model_config = ConfigDict(extra="forbid")

    order_id: int = Field(..., gt=0, description="Order to pay for")


class PaymentSessionResponse(BaseModel):
    """Stripe Checkout session handle."""

    session_id: str = Field(description="Stripe Checkout Session ID")
    url: str | None = Field(default=None, description="Stripe Checkout URL to redirect to")


class PaymentStatusResponse(BaseModel):
    """Payment state of an order."""

    order_id: int
    order_number: str
    payment_status: PaymentStatus
    total: Decimal


class WebhookAck(BaseModel):
    """Acknowledgment returned to Stripe."""

    status: str = Field(default="received")
