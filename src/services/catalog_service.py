"""Catalog service for product and category operations."""

import logging
import math
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.database import DataStore
from src.core.tables import categories, order_items, products
from src.models.product import Category, Product
from src.schemas.category import CategoryCreate, CategoryUpdate
from src.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

PRODUCT_SORT_FIELDS = {
    "created_at": products.c.created_at,
    "price": products.c.price,
    "name": products.c.name,
    "rating": products.c.rating,
}

PRODUCT_COLLECTIONS = {
    "featured": products.c.featured,
    "new": products.c.is_new,
    "budget": products.c.is_budget,
    "luxury": products.c.is_luxury,
}


def slugify(name: str) -> str:
    """Lowercase a name and join its words with hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def parse_sort(sort: str | None) -> Any:
    """Translate 'field,direction' into an ORDER BY clause.

    Unknown fields fall back to created_at; anything but 'asc' sorts descending.
    """
    field, _, direction = (sort or "created_at,desc").partition(",")
    column = PRODUCT_SORT_FIELDS.get(field.strip(), products.c.created_at)
    if direction.strip().lower() == "asc":
        return column.asc()
    return column.desc()


def _product_query() -> Any:
    return select(products, categories.c.name.label("category_name")).select_from(
        products.outerjoin(categories, categories.c.id == products.c.category_id)
    )


class CatalogService:
    """Service for product and category operations."""

    def __init__(self, store: DataStore) -> None:
        """Initialize catalog service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store

    # Products

    async def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """List products with filtering, sorting and pagination.

        Args:
            page: 1-based page number.
            limit: Page size.
            search: Case-insensitive substring of name or description.
            category: Category id or category name.
            min_price: Inclusive lower price bound.
            max_price: Inclusive upper price bound.
            sort: 'field,direction' with field in created_at, price, name, rating.

        Returns:
            dict: products, page, pages, total.
        """
        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(products.c.name).like(pattern),
                    func.lower(func.coalesce(products.c.description, "")).like(pattern),
                )
            )
        if category:
            if category.isdigit():
                conditions.append(products.c.category_id == int(category))
            else:
                conditions.append(func.lower(categories.c.name) == category.lower())
        if min_price is not None:
            conditions.append(products.c.price >= min_price)
        if max_price is not None:
            conditions.append(products.c.price <= max_price)

        joined = products.outerjoin(categories, categories.c.id == products.c.category_id)
        total = self.store.scalar(select(func.count()).select_from(joined).where(*conditions))

        rows = self.store.fetch_all(
            _product_query()
            .where(*conditions)
            .order_by(parse_sort(sort), products.c.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        return {
            "products": rows,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
        }

    async def get_product(self, product_id: int) -> Product:
        """Get a product by ID.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = self.store.fetch_one(_product_query().where(products.c.id == product_id))
        if product is None:
            raise NotFoundError("Product not found")
        return product

    async def list_collection(self, collection: str, limit: int = 8) -> list[Product]:
        """List the newest products flagged for a storefront collection.

        Args:
            collection: One of featured, new, budget, luxury.
            limit: Maximum number of products.

        Raises:
            NotFoundError: If the collection is unknown.
        """
        flag = PRODUCT_COLLECTIONS.get(collection)
        if flag is None:
            raise NotFoundError(f"Unknown collection: {collection}")

        return self.store.fetch_all(
            _product_query()
            .where(flag.is_(True))
            .order_by(products.c.created_at.desc(), products.c.id.desc())
            .limit(limit)
        )

    async def get_related_products(self, product_id: int, limit: int = 4) -> list[Product]:
        """List other products from the same category.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        if product["category_id"] is None:
            return []

        return self.store.fetch_all(
            _product_query()
            .where(
                products.c.category_id == product["category_id"],
                products.c.id != product_id,
            )
            .order_by(products.c.created_at.desc(), products.c.id.desc())
            .limit(limit)
        )

    def _check_category(self, category_id: int | None) -> None:
        if category_id is None:
            return
        exists = self.store.scalar(select(categories.c.id).where(categories.c.id == category_id))
        if exists is None:
            raise ValidationError(f"Category {category_id} does not exist")

    async def create_product(self, data: ProductCreate) -> Product:
        """Create a new product.

        Args:
            data: Product creation data.

        Returns:
            Product: Created product.
        """
        self._check_category(data.category_id)
        now = datetime.now(timezone.utc)
        product_id = self.store.insert(
            insert(products).values(created_at=now, updated_at=now, **data.model_dump())
        )
        logger.info("Created product %s: %s", product_id, data.name)
        return await self.get_product(product_id)

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """Update the supplied fields of a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(changes["category_id"])

        affected = self.store.execute(
            update(products)
            .where(products.c.id == product_id)
            .values(updated_at=datetime.now(timezone.utc), **changes)
        )
        if not affected:
            raise NotFoundError("Product not found")

        logger.info("Updated product %s (%s)", product_id, ", ".join(sorted(changes)) or "no fields")
        return await self.get_product(product_id)

    async def delete_product(self, product_id: int) -> None:
        """Delete a product.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationError: If the product appears on any order.
        """
        ordered = self.store.scalar(
            select(func.count()).select_from(order_items).where(order_items.c.product_id == product_id)
        )
        if ordered:
            raise ValidationError("Cannot delete a product that appears on orders")

        affected = self.store.execute(delete(products).where(products.c.id == product_id))
        if not affected:
            raise NotFoundError("Product not found")
        logger.info("Deleted product %s", product_id)

    # Categories

    def _category_query(self) -> Any:
        product_count = (
            select(func.count())
            .select_from(products)
            .where(products.c.category_id == categories.c.id)
            .scalar_subquery()
        )
        return select(categories, product_count.label("product_count"))

    async def list_categories(self) -> list[Category]:
        """List every category with its product count, by name."""
        return self.store.fetch_all(self._category_query().order_by(categories.c.name))

    async def get_category(self, key: str | int) -> Category:
        """Get a category by numeric id or slug.

        Raises:
            NotFoundError: If no category matches.
        """
        key = str(key)
        if key.isdigit():
            condition = categories.c.id == int(key)
        else:
            condition = categories.c.slug == key

        category = self.store.fetch_one(self._category_query().where(condition))
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def get_category_products(self, key: str | int, page: int = 1, limit: int = 10) -> dict[str, Any]:
        """List the products of one category.

        Returns:
            dict: category, products, page, pages, total.
        """
        category = await self.get_category(key)
        condition = products.c.category_id == category["id"]

        total = self.store.scalar(select(func.count()).select_from(products).where(condition))
        rows = self.store.fetch_all(
            _product_query()
            .where(condition)
            .order_by(products.c.created_at.desc(), products.c.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        return {
            "category": category,
            "products": rows,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
        }

    async def create_category(self, data: CategoryCreate) -> Category:
        """Create a category.

        Raises:
            ValidationError: If the slug is already taken.
        """
        values = data.model_dump()
        values["slug"] = values["slug"] or slugify(data.name)
        if not values["slug"]:
            raise ValidationError("Category name must contain letters or digits")

        now = datetime.now(timezone.utc)
        try:
            category_id = self.store.insert(
                insert(categories).values(created_at=now, updated_at=now, **values)
            )
        except IntegrityError as e:
            raise ValidationError("Category already exists") from e

        logger.info("Created category %s (%s)", category_id, values["slug"])
        return await self.get_category(category_id)

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        """Update a category. Renaming regenerates the slug unless one is given.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If the new slug is already taken.
        """
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and "slug" not in changes:
            changes["slug"] = slugify(changes["name"])

        try:
            affected = self.store.execute(
                update(categories)
                .where(categories.c.id == category_id)
                .values(updated_at=datetime.now(timezone.utc), **changes)
            )
        except IntegrityError as e:
            raise ValidationError("Category already exists") from e

        if not affected:
            raise NotFoundError("Category not found")
        return await self.get_category(category_id)

    async def delete_category(self, category_id: int) -> None:
        """Delete an empty category.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If products still belong to it.
        """
        category = await self.get_category(category_id)
        if category["product_count"]:
            raise ValidationError(
                "Cannot delete category with associated products. Remove all products first."
            )

        self.store.execute(delete(categories).where(categories.c.id == category_id))
        logger.info("Deleted category %s", category_id)
