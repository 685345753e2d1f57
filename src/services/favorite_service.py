"""Favorites service."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, insert, select

from src.api.middleware.error_handler import NotFoundError
from src.core.database import DataStore
from src.core.tables import favorites, products


class FavoriteService:
    """Service for a user's favorited products."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def list_favorites(self, user_id: int) -> list[dict[str, Any]]:
        """List the user's favorites, most recent first."""
        return self.store.fetch_all(
            select(
                favorites.c.product_id,
                favorites.c.created_at,
                products.c.name,
                products.c.price,
                products.c.image,
            )
            .select_from(favorites.join(products, products.c.id == favorites.c.product_id))
            .where(favorites.c.user_id == user_id)
            .order_by(favorites.c.created_at.desc(), favorites.c.id.desc())
        )

    async def is_favorite(self, user_id: int, product_id: int) -> bool:
        """Whether the user has favorited the product. Unknown products are simply not favorites."""
        found = self.store.scalar(
            select(favorites.c.id).where(
                favorites.c.user_id == user_id,
                favorites.c.product_id == product_id,
            )
        )
        return found is not None

    async def add_favorite(self, user_id: int, product_id: int) -> list[dict[str, Any]]:
        """Favorite a product. Adding it twice is a no-op.

        Raises:
            NotFoundError: If the product does not exist.
        """
        exists = self.store.scalar(select(products.c.id).where(products.c.id == product_id))
        if exists is None:
            raise NotFoundError("Product not found")

        already = self.store.scalar(
            select(favorites.c.id).where(
                favorites.c.user_id == user_id,
                favorites.c.product_id == product_id,
            )
        )
        if already is None:
            self.store.insert(
                insert(favorites).values(
                    user_id=user_id,
                    product_id=product_id,
                    created_at=datetime.now(timezone.utc),
                )
            )

        return await self.list_favorites(user_id)

    async def remove_favorite(self, user_id: int, product_id: int) -> list[dict[str, Any]]:
        """Remove a product from favorites.

        Raises:
            NotFoundError: If the product was not a favorite.
        """
        affected = self.store.execute(
            delete(favorites).where(
                favorites.c.user_id == user_id,
                favorites.c.product_id == product_id,
            )
        )
        if not affected:
            raise NotFoundError("Favorite not found")
        return await self.list_favorites(user_id)
