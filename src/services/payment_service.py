"""Stripe checkout and payment reconciliation service."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

import stripe
from sqlalchemy import or_, select, update

from src.api.middleware.error_handler import (
    NotFoundError,
    SignatureError,
    UpstreamError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.database import DataStore
from src.core.stripe import get_stripe, to_cents
from src.core.tables import orders
from src.services.order_service import OrderService, format_order_number, to_money

logger = logging.getLogger(__name__)

PAYMENT_FAILED_EVENTS = (
    "checkout.session.async_payment_failed",
    "payment_intent.payment_failed",
)


class PaymentService:
    """Service for Stripe Checkout sessions and webhook handling."""

    def __init__(self, store: DataStore) -> None:
        """Initialize payment service with clients.

        Args:
            store: Relational data store gateway.
        """
        self.store = store
        self.stripe = get_stripe()
        self.settings = get_settings()
        self.order_service = OrderService(store)

    def _build_line_items(self, order: dict[str, Any]) -> list[dict[str, Any]]:
        currency = self.settings.stripe_currency
        line_items: list[dict[str, Any]] = []

        for item in order["items"]:
            product_data: dict[str, Any] = {"name": item.get("name") or f"Product {item['product_id']}"}
            image = item.get("image")
            if image and image.startswith("http"):
                product_data["images"] = [image]
            line_items.append({
                "price_data": {
                    "currency": currency,
                    "product_data": product_data,
                    "unit_amount": to_cents(item["price"]),
                },
                "quantity": item["quantity"],
            })

        for label, key in (("Shipping", "shipping_cost"), ("Tax", "tax")):
            if order[key] > 0:
                line_items.append({
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": label},
                        "unit_amount": to_cents(order[key]),
                    },
                    "quantity": 1,
                })

        return line_items

    async def create_payment_session(
        self,
        order_id: int,
        user_id: int,
        customer_email: str | None = None,
    ) -> dict[str, Any]:
        """Create a Stripe Checkout Session for an existing order.

        Args:
            order_id: Order to pay for.
            user_id: Caller; the order must belong to them.
            customer_email: Optional pre-fill email.

        Returns:
            dict: Contains session_id and url.

        Raises:
            NotFoundError: If the order does not exist for this user.
            ValidationError: If the order is already paid or is cash on delivery.
            UpstreamError: If Stripe is not configured or the API call fails.
        """
        order = await self.order_service.get_user_order(order_id, user_id)

        if order["payment_status"] == "paid":
            raise ValidationError("Order is already paid")
        if order["payment_method"] == "cash_on_delivery":
            raise ValidationError("Cash on delivery orders do not need a payment session")

        if not self.settings.stripe_secret_key:
            raise UpstreamError("Payment processor is not configured", service="stripe")

        checkout_params: dict[str, Any] = {
            "mode": "payment",
            "line_items": self._build_line_items(order),
            "success_url": f"{self.settings.frontend_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.settings.frontend_url}/checkout/cancel?order_id={order_id}",
            "client_reference_id": order["order_number"],
            "metadata": {
                "order_id": str(order_id),
                "order_number": order["order_number"],
            },
        }
        if customer_email:
            checkout_params["customer_email"] = customer_email

        try:
            session = self.stripe.checkout.Session.create(**checkout_params)
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session for order %s: %s", order_id, str(e))
            raise UpstreamError("Failed to create payment session", service="stripe") from e

        self.store.execute(
            update(orders)
            .where(orders.c.id == order_id)
            .values(payment_session_id=session.id, updated_at=datetime.now(timezone.utc))
        )
        logger.info("Payment session %s created for order %s", session.id, order["order_number"])

        return {"session_id": session.id, "url": session.url}

    def verify_webhook_signature(self, payload: bytes, sig_header: str | None) -> dict[str, Any]:
        """Verify Stripe webhook signature and return event.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            dict: Verified Stripe event as plain JSON.

        Raises:
            SignatureError: If the header is missing, the secret is unset,
                or the signature does not match the payload.
        """
        if not sig_header:
            raise SignatureError("Missing Stripe-Signature header")

        if not self.settings.stripe_webhook_secret:
            logger.error("Stripe webhook secret is not configured; rejecting webhook")
            raise SignatureError("Webhook signature cannot be verified")

        try:
            self.stripe.Webhook.construct_event(
                payload, sig_header, self.settings.stripe_webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise SignatureError("Invalid webhook signature") from e
        except ValueError as e:
            logger.warning("Invalid webhook payload: %s", str(e))
            raise SignatureError("Invalid webhook payload") from e

        return json.loads(payload)

    async def handle_webhook(self, payload: bytes, sig_header: str | None) -> dict[str, str]:
        """Verify and dispatch a Stripe webhook event.

        Once the signature checks out the event is always acknowledged, even
        if processing fails, so Stripe does not keep retrying it.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            dict: Acknowledgment message.

        Raises:
            SignatureError: If verification fails. Nothing is written.
        """
        event = self.verify_webhook_signature(payload, sig_header)
        event_type = event.get("type", "")
        logger.info("Processing Stripe webhook event: %s (%s)", event_type, event.get("id"))

        try:
            if event_type == "checkout.session.completed":
                await self.handle_checkout_completed(event)

            elif event_type in PAYMENT_FAILED_EVENTS:
                await self.handle_payment_failed(event)

            elif event_type == "checkout.session.expired":
                await self.handle_checkout_expired(event)

            else:
                # Acknowledge so Stripe stops retrying
                logger.debug("Unhandled webhook event type: %s", event_type)

        except Exception:
            logger.exception("Error processing webhook event %s (%s)", event.get("id"), event_type)

        return {"status": "received"}

    async def handle_checkout_completed(self, event: dict[str, Any]) -> dict[str, Any]:
        """Process checkout.session.completed webhook event.

        Writes absolute values only, so a redelivered event converges on the
        same row state. order_status is never touched here.

        Args:
            event: Stripe webhook event data.

        Returns:
            dict: order_id and payment_status, or empty if no order matched.
        """
        session = event["data"]["object"]
        order_id = (session.get("metadata") or {}).get("order_id")

        if not order_id:
            logger.warning("Webhook missing order_id in metadata: %s", session.get("id"))
            return {}

        affected = self.store.execute(
            update(orders)
            .where(orders.c.id == int(order_id))
            .values(
                payment_status="paid",
                payment_intent_id=session.get("payment_intent"),
                updated_at=datetime.now(timezone.utc),
            )
        )

        if not affected:
            logger.warning("Order not found for completed checkout: %s", order_id)
            return {}

        logger.info("Order %s marked as paid", order_id)
        return {"order_id": int(order_id), "payment_status": "paid"}

    async def handle_payment_failed(self, event: dict[str, Any]) -> None:
        """Record a failed payment.

        The order stays pending and its stock stays reserved; failed
        payments are reconciled by hand.

        Args:
            event: Stripe webhook event data.
        """
        payment = event["data"]["object"]
        order_id = (payment.get("metadata") or {}).get("order_id")
        failure = (payment.get("last_payment_error") or {}).get("message", "unknown reason")

        logger.error(
            "Payment failed for order %s (%s): %s",
            order_id or "unknown",
            event.get("type"),
            failure,
        )

    async def handle_checkout_expired(self, event: dict[str, Any]) -> None:
        """Process checkout.session.expired webhook event.

        Args:
            event: Stripe webhook event data.
        """
        session = event["data"]["object"]
        order_id = (session.get("metadata") or {}).get("order_id")
        logger.info("Checkout session %s expired for order %s", session.get("id"), order_id)

    async def get_payment_status(self, payment_id: str, user_id: int) -> dict[str, Any]:
        """Look up an order's payment state by Stripe payment intent or session id.

        Args:
            payment_id: Payment intent id or checkout session id.
            user_id: Caller; the order must belong to them.

        Returns:
            dict: order_id, order_number, payment_status and total.

        Raises:
            NotFoundError: If no order of this user carries the id.
        """
        row = self.store.fetch_one(
            select(
                orders.c.id,
                orders.c.payment_status,
                orders.c.total,
                orders.c.created_at,
            ).where(
                or_(
                    orders.c.payment_intent_id == payment_id,
                    orders.c.payment_session_id == payment_id,
                ),
                orders.c.user_id == user_id,
            )
        )
        if row is None:
            raise NotFoundError("Order not found")

        return {
            "order_id": row["id"],
            "order_number": format_order_number(row["id"], row["created_at"]),
            "payment_status": row["payment_status"],
            "total": to_money(row["total"]),
        }
