"""Order creation and fulfillment business logic."""

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from operator import itemgetter
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from src.api.middleware.error_handler import (
    AuthorizationError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.database import DataStore, Transaction
from src.core.tables import (
    cart_items,
    order_items,
    orders,
    products,
    shipping_addresses,
    users,
)
from src.models.order import Order, OrderLine
from src.schemas.auth import UserContext
from src.schemas.order import OrderItemCreate, ShippingAddressCreate

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Quantize a numeric value to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_order_number(order_id: int, created_at: datetime | None) -> str:
    """Build the customer-facing order number, e.g. ORD-2024-007."""
    year = (created_at or datetime.now(timezone.utc)).year
    return f"ORD-{year}-{order_id:03d}"


def merge_order_lines(items: Sequence[OrderItemCreate]) -> list[OrderLine]:
    """Collapse repeated product ids into one line, keeping first-seen order."""
    quantities: dict[int, int] = {}
    for item in items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return [{"product_id": pid, "quantity": qty} for pid, qty in quantities.items()]


_ORDER_COLUMNS = [
    orders,
    users.c.name.label("customer_name"),
    users.c.email.label("customer_email"),
]


class OrderService:
    """Service for placing orders and tracking their fulfillment."""

    def __init__(self, store: DataStore) -> None:
        """Initialize order service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store
        self.settings = get_settings()

    def calculate_totals(self, subtotal: Decimal) -> dict[str, Decimal]:
        """Derive tax, shipping and total from a subtotal.

        Args:
            subtotal: Sum of quantity times unit price.

        Returns:
            dict: subtotal, tax, shipping_cost and total, all in cents precision.
        """
        subtotal = to_money(subtotal)
        tax = to_money(subtotal * self.settings.tax_rate)
        if subtotal >= self.settings.free_shipping_threshold:
            shipping_cost = to_money(0)
        else:
            shipping_cost = to_money(self.settings.shipping_flat_rate)
        return {
            "subtotal": subtotal,
            "tax": tax,
            "shipping_cost": shipping_cost,
            "total": subtotal + tax + shipping_cost,
        }

    def _snapshot_prices(self, product_ids: list[int]) -> dict[int, Decimal]:
        rows = self.store.fetch_all(
            select(products.c.id, products.c.price).where(products.c.id.in_(product_ids))
        )
        prices = {row["id"]: to_money(row["price"]) for row in rows}
        for product_id in product_ids:
            if product_id not in prices:
                raise NotFoundError(f"Product {product_id} not found")
        return prices

    async def create_order(
        self,
        user_id: int,
        items: Sequence[OrderItemCreate],
        shipping_address: ShippingAddressCreate,
        payment_method: str,
    ) -> Order:
        """Place an order atomically.

        Writes the shipping address, the order, its items, decrements stock
        for every item and empties the user's cart, all in one transaction.
        Any failure leaves the database untouched.

        Args:
            user_id: Purchasing user.
            items: Requested products and quantities.
            shipping_address: Destination address.
            payment_method: card, wallet or cash_on_delivery.

        Returns:
            Order: The created order with address and items.

        Raises:
            ValidationError: If no items were supplied.
            NotFoundError: If a product does not exist.
            InsufficientStockError: If a product cannot cover its quantity.
        """
        lines = merge_order_lines(items)
        if not lines:
            raise ValidationError("No order items")

        # Read prices before opening the write transaction so the
        # transaction's first statement takes the write lock.
        prices = self._snapshot_prices([line["product_id"] for line in lines])
        totals = self.calculate_totals(
            sum((prices[line["product_id"]] * line["quantity"] for line in lines), Decimal("0"))
        )
        now = datetime.now(timezone.utc)

        try:
            order = self._write_order(user_id, lines, prices, totals, shipping_address, payment_method, now)
        except IntegrityError as e:
            # a product was deleted after its price was read
            logger.warning("Order for user %s hit a missing product: %s", user_id, str(e))
            raise NotFoundError("A product in this order no longer exists") from e

        logger.info(
            "Order %s created for user %s: %d line(s), total %s",
            order["order_number"],
            user_id,
            len(lines),
            order["total"],
        )
        return order

    def _write_order(
        self,
        user_id: int,
        lines: list[OrderLine],
        prices: dict[int, Decimal],
        totals: dict[str, Decimal],
        shipping_address: ShippingAddressCreate,
        payment_method: str,
        now: datetime,
    ) -> Order:
        with self.store.transaction() as tx:
            address_id = tx.insert(
                insert(shipping_addresses).values(
                    user_id=user_id,
                    created_at=now,
                    **shipping_address.model_dump(),
                )
            )
            order_id = tx.insert(
                insert(orders).values(
                    user_id=user_id,
                    shipping_address_id=address_id,
                    payment_method=payment_method,
                    payment_status="pending",
                    order_status="processing",
                    created_at=now,
                    updated_at=now,
                    **totals,
                )
            )

            for line in lines:
                tx.insert(
                    insert(order_items).values(
                        order_id=order_id,
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        price=prices[line["product_id"]],
                    )
                )

            # ascending id so concurrent orders take row locks in the same order
            for line in sorted(lines, key=itemgetter("product_id")):
                self._reserve_stock(tx, line["product_id"], line["quantity"], now)

            tx.execute(delete(cart_items).where(cart_items.c.user_id == user_id))

            return self._load_order(tx, order_id)

    def _reserve_stock(self, tx: Transaction, product_id: int, quantity: int, now: datetime) -> None:
        affected = tx.execute(
            update(products)
            .where(products.c.id == product_id, products.c.stock >= quantity)
            .values(stock=products.c.stock - quantity, updated_at=now)
        )
        if affected:
            return

        current = tx.fetch_one(select(products.c.stock).where(products.c.id == product_id))
        if current is None:
            raise NotFoundError(f"Product {product_id} not found")
        raise InsufficientStockError(
            f"Insufficient stock for product {product_id}: "
            f"requested {quantity}, available {current['stock']}",
            product_id=product_id,
        )

    def _hydrate(self, reader: Any, rows: list[dict[str, Any]]) -> list[Order]:
        """Attach order numbers, shipping addresses and items to order rows."""
        if not rows:
            return []

        order_ids = [row["id"] for row in rows]
        address_ids = [row["shipping_address_id"] for row in rows]

        addresses = {
            row["id"]: row
            for row in reader.fetch_all(
                select(shipping_addresses).where(shipping_addresses.c.id.in_(address_ids))
            )
        }

        items_by_order: dict[int, list[dict[str, Any]]] = {order_id: [] for order_id in order_ids}
        item_rows = reader.fetch_all(
            select(
                order_items,
                products.c.name,
                products.c.image,
            )
            .select_from(order_items.outerjoin(products, products.c.id == order_items.c.product_id))
            .where(order_items.c.order_id.in_(order_ids))
            .order_by(order_items.c.id)
        )
        for item in item_rows:
            item["price"] = to_money(item["price"])
            items_by_order[item["order_id"]].append(item)

        hydrated = []
        for row in rows:
            order = dict(row)
            for key in ("subtotal", "tax", "shipping_cost", "total"):
                order[key] = to_money(order[key])
            order["order_number"] = format_order_number(order["id"], order.get("created_at"))
            order["shipping_address"] = addresses.get(order["shipping_address_id"])
            order["items"] = items_by_order[order["id"]]
            hydrated.append(order)
        return hydrated

    def _order_query(self) -> Any:
        return select(*_ORDER_COLUMNS).select_from(
            orders.outerjoin(users, users.c.id == orders.c.user_id)
        )

    def _load_order(self, reader: Any, order_id: int) -> Order:
        row = reader.fetch_one(self._order_query().where(orders.c.id == order_id))
        if row is None:
            raise NotFoundError("Order not found")
        return self._hydrate(reader, [row])[0]

    async def get_order(self, order_id: int, user: UserContext) -> Order:
        """Get an order visible to the caller.

        Args:
            order_id: Order ID.
            user: Authenticated caller.

        Returns:
            Order: The order with address and items.

        Raises:
            NotFoundError: If the order does not exist.
            AuthorizationError: If the caller is neither the owner nor an admin.
        """
        order = self._load_order(self.store, order_id)
        if order["user_id"] != user.user_id and not user.is_admin:
            raise AuthorizationError("Not authorized to view this order")
        return order

    async def get_user_order(self, order_id: int, user_id: int) -> Order:
        """Get an order only if it belongs to the given user.

        Raises:
            NotFoundError: If no such order exists for this user.
        """
        row = self.store.fetch_one(
            self._order_query().where(orders.c.id == order_id, orders.c.user_id == user_id)
        )
        if row is None:
            raise NotFoundError("Order not found")
        return self._hydrate(self.store, [row])[0]

    async def list_user_orders(self, user_id: int) -> list[Order]:
        """Get all orders placed by a user, newest first."""
        rows = self.store.fetch_all(
            self._order_query()
            .where(orders.c.user_id == user_id)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
        )
        return self._hydrate(self.store, rows)

    async def list_all_orders(
        self,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> dict[str, Any]:
        """List every order for the admin console.

        Args:
            page: 1-based page number.
            limit: Page size.
            status: Optional order_status filter.

        Returns:
            dict: orders (with customer and item_count), page, pages, total.
        """
        conditions = []
        if status:
            conditions.append(orders.c.order_status == status)

        total = self.store.scalar(select(func.count()).select_from(orders).where(*conditions))

        item_counts = (
            select(
                order_items.c.order_id,
                func.sum(order_items.c.quantity).label("item_count"),
            )
            .group_by(order_items.c.order_id)
            .subquery()
        )
        rows = self.store.fetch_all(
            select(
                orders.c.id,
                orders.c.user_id,
                orders.c.payment_method,
                orders.c.payment_status,
                orders.c.order_status,
                orders.c.total,
                orders.c.created_at,
                users.c.name.label("customer_name"),
                users.c.email.label("customer_email"),
                func.coalesce(item_counts.c.item_count, 0).label("item_count"),
            )
            .select_from(
                orders.outerjoin(users, users.c.id == orders.c.user_id).outerjoin(
                    item_counts, item_counts.c.order_id == orders.c.id
                )
            )
            .where(*conditions)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        for row in rows:
            row["total"] = to_money(row["total"])
            row["item_count"] = int(row["item_count"])
            row["order_number"] = format_order_number(row["id"], row["created_at"])

        return {
            "orders": rows,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
        }

    async def update_order_status(self, order_id: int, new_status: str) -> Order:
        """Overwrite an order's fulfillment status.

        Only order_status and updated_at are written; payment columns are
        left alone.

        Args:
            order_id: Order ID.
            new_status: processing, shipped, delivered or cancelled.

        Returns:
            Order: The updated order.

        Raises:
            NotFoundError: If the order does not exist.
        """
        with self.store.transaction() as tx:
            affected = tx.execute(
                update(orders)
                .where(orders.c.id == order_id)
                .values(order_status=new_status, updated_at=datetime.now(timezone.utc))
            )
            if not affected:
                raise NotFoundError("Order not found")
            order = self._load_order(tx, order_id)

        logger.info("Order %s status set to %s", order["order_number"], new_status)
        return order
