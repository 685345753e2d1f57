"""Email service using Resend for transactional emails.

Every send is best-effort: failures are logged and reported in the return
value, never raised, so a flaky mail transport cannot fail the operation
that triggered the email. The senders are plain functions dispatched through
FastAPI BackgroundTasks, which runs them in its threadpool after the
response is sent.
"""

import logging
from decimal import Decimal
from html import escape
from typing import Any

import resend

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def _money(value: Any) -> str:
    return f"{Decimal(str(value)):.2f}"


def _wrap(title: str, body: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
{body}
</body>
</html>
"""


class EmailService:
    """Service for sending transactional emails via Resend."""

    def __init__(self) -> None:
        """Initialize email service with Resend API key."""
        settings = get_settings()
        resend.api_key = settings.resend_api_key
        self.enabled = bool(settings.resend_api_key)
        self.from_email = settings.email_from_address
        self.frontend_url = settings.frontend_url
        self.store_name = settings.store_name

    def _send(self, to_email: str, subject: str, html: str, kind: str) -> dict[str, Any]:
        if not self.enabled:
            logger.warning("Resend API key not configured; skipping %s email to %s", kind, to_email)
            return {"success": False, "error": "email not configured"}

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": subject,
                "html": html,
            })

            logger.info("%s email sent to %s, id: %s", kind, to_email, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send %s email to %s: %s", kind, to_email, str(e))
            return {"success": False, "error": str(e)}

    def send_welcome_email(self, to_email: str, name: str | None = None) -> dict[str, Any]:
        """Send a welcome email to a newly registered customer.

        Args:
            to_email: Recipient email address.
            name: Customer display name.

        Returns:
            dict: Send result with success flag.
        """
        body = f"""
    <h2>Welcome to {escape(self.store_name)}!</h2>
    <p>Hello {escape(name or "there")},</p>
    <p>Thank you for creating an account with us. We're excited to have you as a customer!</p>
    <p><a href="{self.frontend_url}" style="background: #4CAF50; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px;">Start shopping</a></p>
    <p>Best regards,<br>The {escape(self.store_name)} Team</p>
"""
        return self._send(
            to_email,
            f"Welcome to {self.store_name}",
            _wrap("Welcome", body),
            "welcome",
        )

    def send_order_confirmation(self, to_email: str, order: dict[str, Any]) -> dict[str, Any]:
        """Send an order confirmation with the line items and totals.

        Args:
            to_email: Recipient email address.
            order: Hydrated order (items and shipping_address included).

        Returns:
            dict: Send result with success flag.
        """
        rows = "".join(
            f"""
        <tr>
            <td style="padding: 8px; border: 1px solid #ddd;">{escape(str(item.get("name") or item["product_id"]))}</td>
            <td style="padding: 8px; border: 1px solid #ddd;">{item["quantity"]}</td>
            <td style="padding: 8px; text-align: right; border: 1px solid #ddd;">{_money(item["price"])}</td>
        </tr>"""
            for item in order.get("items", [])
        )
        address = order.get("shipping_address") or {}
        totals = "".join(
            f"""
        <tr>
            <td colspan="2" style="padding: 8px; text-align: right; border: 1px solid #ddd;"><strong>{label}:</strong></td>
            <td style="padding: 8px; text-align: right; border: 1px solid #ddd;">{_money(order[key])}</td>
        </tr>"""
            for label, key in (
                ("Subtotal", "subtotal"),
                ("Shipping", "shipping_cost"),
                ("Tax", "tax"),
                ("Total", "total"),
            )
        )
        body = f"""
    <h2>Thank You for Your Order!</h2>
    <p>Your order #{escape(order["order_number"])} has been received and is being processed.</p>
    <h3>Order Summary:</h3>
    <table style="width: 100%; border-collapse: collapse;">
        <tr style="background-color: #f2f2f2;">
            <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Product</th>
            <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Quantity</th>
            <th style="padding: 8px; text-align: right; border: 1px solid #ddd;">Price</th>
        </tr>{rows}{totals}
    </table>
    <h3>Shipping Address:</h3>
    <p>
        {escape(address.get("full_name", ""))}<br>
        {escape(address.get("address_line1", ""))}<br>
        {escape(address.get("city", ""))}, {escape(address.get("state", ""))} {escape(address.get("zip_code", ""))}<br>
        {escape(address.get("country", ""))}
    </p>
    <p>We'll notify you when your order ships.</p>
    <p>Best regards,<br>The {escape(self.store_name)} Team</p>
"""
        return self._send(
            to_email,
            f"Order Confirmation #{order['order_number']}",
            _wrap("Order Confirmation", body),
            "order confirmation",
        )

    def send_shipping_notification(self, to_email: str, order: dict[str, Any]) -> dict[str, Any]:
        """Tell the customer their order has shipped.

        Args:
            to_email: Recipient email address.
            order: The shipped order.

        Returns:
            dict: Send result with success flag.
        """
        body = f"""
    <h2>Your Order Has Shipped!</h2>
    <p>Great news! Your order #{escape(order["order_number"])} has been shipped and is on its way to you.</p>
    <p>You can follow its progress from <a href="{self.frontend_url}/orders/{order["id"]}">your order page</a>.</p>
    <p>Thank you for shopping with {escape(self.store_name)}!</p>
"""
        return self._send(
            to_email,
            f"Your Order #{order['order_number']} Has Shipped",
            _wrap("Order Shipped", body),
            "shipping notification",
        )

    def send_newsletter_welcome(self, to_email: str, name: str | None = None) -> dict[str, Any]:
        """Confirm a newsletter subscription.

        Args:
            to_email: Subscriber address.
            name: Optional subscriber name.

        Returns:
            dict: Send result with success flag.
        """
        body = f"""
    <h2>Thank You for Subscribing!</h2>
    <p>Hello {escape(name or "there")},</p>
    <p>You'll now receive updates on our latest products, promotions, and more!</p>
    <p>Best regards,<br>The {escape(self.store_name)} Team</p>
"""
        return self._send(
            to_email,
            f"Welcome to the {self.store_name} Newsletter",
            _wrap("Newsletter", body),
            "newsletter welcome",
        )


def get_email_service() -> EmailService:
    """Get email service instance.

    Returns:
        EmailService: Email service instance.
    """
    return EmailService()
