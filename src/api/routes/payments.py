"""Payment API routes for Stripe integration."""

import logging

from fastapi import APIRouter, Request, status

from src.api.deps import CurrentUser, PaymentServiceDep
from src.schemas.payment import (
    PaymentSessionCreate,
    PaymentSessionResponse,
    PaymentStatusResponse,
    WebhookAck,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-session",
    response_model=PaymentSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Stripe Checkout Session",
    description="Creates a Stripe Checkout Session for one of the caller's unpaid orders.",
)
async def create_payment_session(
    data: PaymentSessionCreate,
    user: CurrentUser,
    service: PaymentServiceDep,
) -> PaymentSessionResponse:
    """Create a Stripe Checkout Session.

    The frontend should redirect to the returned url.

    Raises:
        NotFoundError: 404 if the order is not the caller's.
        ValidationError: 400 if the order is paid or cash on delivery.
        UpstreamError: 502 if Stripe rejects the request.
    """
    result = await service.create_payment_session(
        order_id=data.order_id,
        user_id=user.user_id,
        customer_email=user.email,
    )
    return PaymentSessionResponse(**result)


@router.post(
    "/webhook",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives and processes Stripe webhook events. Requires valid signature.",
)
async def stripe_webhook(request: Request, service: PaymentServiceDep) -> WebhookAck:
    """Handle Stripe webhook events.

    The signature is checked against the raw body before anything is
    processed.

    Handles:
    - checkout.session.completed: marks the order paid
    - checkout.session.async_payment_failed, payment_intent.payment_failed: logged
    - checkout.session.expired: logged

    Args:
        request: FastAPI request object for reading raw body and headers.
        service: Payment service.

    Returns:
        WebhookAck: Acknowledgment message.

    Raises:
        SignatureError: 400 if the signature is missing or invalid.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    logger.debug("Webhook payload size: %d bytes", len(payload))

    return WebhookAck(**await service.handle_webhook(payload, sig_header))


@router.get(
    "/status/{payment_id}",
    response_model=PaymentStatusResponse,
    summary="Get payment status",
    description="Look up an order's payment state by Stripe payment intent or checkout session id.",
)
async def get_payment_status(
    payment_id: str,
    user: CurrentUser,
    service: PaymentServiceDep,
) -> PaymentStatusResponse:
    """Get payment status for one of the caller's orders."""
    return PaymentStatusResponse(**await service.get_payment_status(payment_id, user.user_id))
