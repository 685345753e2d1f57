"""Cart service backed by the cart_items table."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from src.api.middleware.error_handler import InsufficientStockError, NotFoundError
from src.core.database import DataStore, Transaction
from src.core.tables import cart_items, products
from src.services.order_service import to_money

logger = logging.getLogger(__name__)


class CartService:
    """Service for the per-user shopping cart."""

    def __init__(self, store: DataStore) -> None:
        """Initialize cart service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store

    def _check_stock(self, product_id: int, quantity: int, stock: int) -> None:
        if quantity > stock:
            raise InsufficientStockError(
                f"Only {stock} unit(s) of product {product_id} in stock",
                product_id=product_id,
            )

    def _get_stock(self, product_id: int) -> int:
        stock = self.store.scalar(select(products.c.stock).where(products.c.id == product_id))
        if stock is None:
            raise NotFoundError("Product not found")
        return stock

    async def get_cart(self, user_id: int) -> dict[str, Any]:
        """Get the user's cart with current product details.

        Returns:
            dict: items, item_count and subtotal.
        """
        items = self.store.fetch_all(
            select(
                cart_items.c.id,
                cart_items.c.product_id,
                cart_items.c.quantity,
                products.c.name,
                products.c.price,
                products.c.image,
                products.c.stock,
            )
            .select_from(cart_items.join(products, products.c.id == cart_items.c.product_id))
            .where(cart_items.c.user_id == user_id)
            .order_by(cart_items.c.created_at, cart_items.c.id)
        )

        subtotal = Decimal("0.00")
        for item in items:
            item["price"] = to_money(item["price"])
            subtotal += item["price"] * item["quantity"]

        return {
            "items": items,
            "item_count": sum(item["quantity"] for item in items),
            "subtotal": to_money(subtotal),
        }

    def _find_line(self, tx: Transaction, user_id: int, product_id: int) -> dict[str, Any] | None:
        return tx.fetch_one(
            select(cart_items.c.id, cart_items.c.quantity).where(
                cart_items.c.user_id == user_id,
                cart_items.c.product_id == product_id,
            )
        )

    def _merge_line(self, user_id: int, product_id: int, quantity: int, stock: int) -> None:
        now = datetime.now(timezone.utc)

        with self.store.transaction() as tx:
            existing = self._find_line(tx, user_id, product_id)
            if existing:
                new_quantity = existing["quantity"] + quantity
                self._check_stock(product_id, new_quantity, stock)
                tx.execute(
                    update(cart_items)
                    .where(cart_items.c.id == existing["id"])
                    .values(quantity=new_quantity, updated_at=now)
                )
            else:
                self._check_stock(product_id, quantity, stock)
                tx.insert(
                    insert(cart_items).values(
                        user_id=user_id,
                        product_id=product_id,
                        quantity=quantity,
                        created_at=now,
                        updated_at=now,
                    )
                )

    async def add_to_cart(self, user_id: int, product_id: int, quantity: int = 1) -> dict[str, Any]:
        """Add a product to the cart, merging with an existing line.

        Raises:
            NotFoundError: If the product does not exist.
            InsufficientStockError: If the combined quantity exceeds stock.
        """
        stock = self._get_stock(product_id)

        try:
            self._merge_line(user_id, product_id, quantity, stock)
        except IntegrityError:
            # a concurrent request inserted the same line first
            logger.info("Cart line for user %s product %s already exists, merging", user_id, product_id)
            self._merge_line(user_id, product_id, quantity, stock)

        return await self.get_cart(user_id)

    async def update_cart_item(self, user_id: int, item_id: int, quantity: int) -> dict[str, Any]:
        """Set the quantity of one cart line.

        Raises:
            NotFoundError: If the line is not in this user's cart.
            InsufficientStockError: If quantity exceeds stock.
        """
        item = self.store.fetch_one(
            select(cart_items.c.product_id).where(
                cart_items.c.id == item_id,
                cart_items.c.user_id == user_id,
            )
        )
        if item is None:
            raise NotFoundError("Cart item not found")

        self._check_stock(item["product_id"], quantity, self._get_stock(item["product_id"]))

        self.store.execute(
            update(cart_items)
            .where(cart_items.c.id == item_id)
            .values(quantity=quantity, updated_at=datetime.now(timezone.utc))
        )
        return await self.get_cart(user_id)

    async def remove_from_cart(self, user_id: int, item_id: int) -> dict[str, Any]:
        """Remove one line from the cart.

        Raises:
            NotFoundError: If the line is not in this user's cart.
        """
        affected = self.store.execute(
            delete(cart_items).where(cart_items.c.id == item_id, cart_items.c.user_id == user_id)
        )
        if not affected:
            raise NotFoundError("Cart item not found")
        return await self.get_cart(user_id)

    async def clear_cart(self, user_id: int) -> int:
        """Empty the cart. Returns the number of lines removed."""
        removed = self.store.execute(delete(cart_items).where(cart_items.c.user_id == user_id))
        logger.debug("Cleared %d cart line(s) for user %s", removed, user_id)
        return removed
