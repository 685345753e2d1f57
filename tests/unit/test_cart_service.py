"""Unit tests for CartService and FavoriteService."""

from decimal import Decimal
from typing import Any
from unittest.mock import patch

import pytest

from src.api.middleware.error_handler import InsufficientStockError, NotFoundError
from src.services.cart_service import CartService
from src.services.favorite_service import FavoriteService


@pytest.fixture
def cart(store: Any) -> CartService:
    """Create CartService bound to the test database."""
    return CartService(store)


@pytest.fixture
def favorites(store: Any) -> FavoriteService:
    """Create FavoriteService bound to the test database."""
    return FavoriteService(store)


class TestCart:
    """Tests for cart operations."""

    @pytest.mark.asyncio
    async def test_add_merges_lines(self, cart: CartService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        product_id = make_product(price="4.50", stock=10)

        await cart.add_to_cart(user_id, product_id, 2)
        result = await cart.add_to_cart(user_id, product_id, 3)

        assert len(result["items"]) == 1
        assert result["items"][0]["quantity"] == 5
        assert result["item_count"] == 5
        assert result["subtotal"] == Decimal("22.50")

    @pytest.mark.asyncio
    async def test_add_beyond_stock(self, cart: CartService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        product_id = make_product(stock=3)
        await cart.add_to_cart(user_id, product_id, 2)

        with pytest.raises(InsufficientStockError):
            await cart.add_to_cart(user_id, product_id, 2)

        assert (await cart.get_cart(user_id))["items"][0]["quantity"] == 2

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, cart: CartService, make_user: Any) -> None:
        with pytest.raises(NotFoundError):
            await cart.add_to_cart(make_user(), 999, 1)

    @pytest.mark.asyncio
    async def test_update_and_remove(self, cart: CartService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        product_id = make_product(stock=5)
        item_id = (await cart.add_to_cart(user_id, product_id, 1))["items"][0]["id"]

        updated = await cart.update_cart_item(user_id, item_id, 4)
        assert updated["items"][0]["quantity"] == 4

        with pytest.raises(InsufficientStockError):
            await cart.update_cart_item(user_id, item_id, 6)

        emptied = await cart.remove_from_cart(user_id, item_id)
        assert emptied == {"items": [], "item_count": 0, "subtotal": Decimal("0.00")}

    @pytest.mark.asyncio
    async def test_lines_are_private(self, cart: CartService, make_user: Any, make_product: Any) -> None:
        owner = make_user()
        other = make_user()
        item_id = (await cart.add_to_cart(owner, make_product(), 1))["items"][0]["id"]

        with pytest.raises(NotFoundError):
            await cart.update_cart_item(other, item_id, 2)
        with pytest.raises(NotFoundError):
            await cart.remove_from_cart(other, item_id)

    @pytest.mark.asyncio
    async def test_add_merges_when_line_inserted_concurrently(
        self, cart: CartService, make_user: Any, make_product: Any
    ) -> None:
        """A duplicate-line insert from a racing request is folded into the existing line."""
        user_id = make_user()
        product_id = make_product(stock=10)
        await cart.add_to_cart(user_id, product_id, 2)
        find_line = cart._find_line
        lookups: list[int] = []

        def stale_then_current(tx: Any, uid: int, pid: int) -> dict[str, Any] | None:
            lookups.append(pid)
            # the first lookup misses the line the other request just wrote
            return None if len(lookups) == 1 else find_line(tx, uid, pid)

        with patch.object(cart, "_find_line", side_effect=stale_then_current):
            result = await cart.add_to_cart(user_id, product_id, 3)

        assert len(lookups) == 2
        assert len(result["items"]) == 1
        assert result["items"][0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_clear(self, cart: CartService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        await cart.add_to_cart(user_id, make_product(name="A"), 1)
        await cart.add_to_cart(user_id, make_product(name="B"), 1)

        assert await cart.clear_cart(user_id) == 2
        assert (await cart.get_cart(user_id))["items"] == []


class TestFavorites:
    """Tests for favorites."""

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, favorites: FavoriteService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        product_id = make_product(name="Teddy")

        await favorites.add_favorite(user_id, product_id)
        result = await favorites.add_favorite(user_id, product_id)

        assert [f["product_id"] for f in result] == [product_id]
        assert result[0]["name"] == "Teddy"

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, favorites: FavoriteService, make_user: Any) -> None:
        with pytest.raises(NotFoundError):
            await favorites.add_favorite(make_user(), 999)

    @pytest.mark.asyncio
    async def test_remove(self, favorites: FavoriteService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        product_id = make_product()
        await favorites.add_favorite(user_id, product_id)

        assert await favorites.remove_favorite(user_id, product_id) == []
        with pytest.raises(NotFoundError):
            await favorites.remove_favorite(user_id, product_id)

    @pytest.mark.asyncio
    async def test_is_favorite(self, favorites: FavoriteService, make_user: Any, make_product: Any) -> None:
        user_id = make_user()
        other = make_user()
        product_id = make_product()
        await favorites.add_favorite(user_id, product_id)

        assert await favorites.is_favorite(user_id, product_id) is True
        assert await favorites.is_favorite(other, product_id) is False
        assert await favorites.is_favorite(user_id, 999) is False
