#!/usr/bin/env python
"""Script to create the schema and load a starter catalog.

Usage:
    python scripts/seed_catalog.py

This script:
1. Creates any missing tables in DATABASE_URL
2. Adds sample categories and products when the catalog is empty
3. Creates an admin account when SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD are set

Safe to run repeatedly: existing rows are never touched.
"""

import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, insert, select

from src.core.database import get_data_store
from src.core.tables import products, users
from src.schemas.category import CategoryCreate
from src.schemas.product import ProductCreate
from src.services.auth_service import hash_password
from src.services.catalog_service import CatalogService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


SAMPLE_CATEGORIES: list[dict[str, str]] = [
    {"name": "Clothing", "description": "Baby clothes and accessories"},
    {"name": "Furniture", "description": "Cribs, changing tables, and more"},
    {"name": "Feeding", "description": "Bottles, bibs, and other feeding supplies"},
    {"name": "Toys", "description": "Educational and fun toys for all ages"},
    {"name": "Electronics", "description": "Monitors, humidifiers, and other electronics"},
]

# (category name, product fields)
SAMPLE_PRODUCTS: list[tuple[str, dict]] = [
    ("Clothing", {
        "name": "Baby Onesie",
        "description": "Soft cotton onesie for newborns",
        "price": Decimal("19.99"),
        "original_price": Decimal("24.99"),
        "stock": 15,
        "featured": True,
        "is_new": True,
    }),
    ("Furniture", {
        "name": "Baby Crib",
        "description": "Convertible 4-in-1 crib that grows with your child",
        "price": Decimal("299.99"),
        "original_price": Decimal("349.99"),
        "stock": 8,
        "featured": True,
        "is_luxury": True,
    }),
    ("Feeding", {
        "name": "Baby Bottles Set",
        "description": "Set of 3 anti-colic baby bottles",
        "price": Decimal("24.99"),
        "original_price": Decimal("29.99"),
        "stock": 25,
        "is_budget": True,
    }),
    ("Electronics", {
        "name": "Baby Monitor",
        "description": "HD video monitor with night vision",
        "price": Decimal("89.99"),
        "original_price": Decimal("99.99"),
        "stock": 5,
        "featured": True,
    }),
    ("Toys", {
        "name": "Baby Mobile",
        "description": "Musical mobile with starry night projection",
        "price": Decimal("39.99"),
        "original_price": Decimal("49.99"),
        "stock": 3,
        "is_new": True,
    }),
]


async def seed_catalog(service: CatalogService) -> int:
    """Insert the sample catalog if no products exist yet.

    Returns:
        int: Number of products created.
    """
    if service.store.scalar(select(func.count()).select_from(products)):
        logger.info("Catalog already populated, skipping sample products")
        return 0

    category_ids: dict[str, int] = {}
    for category in SAMPLE_CATEGORIES:
        created = await service.create_category(CategoryCreate(**category))
        category_ids[created["name"]] = created["id"]

    for category_name, fields in SAMPLE_PRODUCTS:
        await service.create_product(ProductCreate(category_id=category_ids[category_name], **fields))

    return len(SAMPLE_PRODUCTS)


def seed_admin(email: str, password: str) -> bool:
    """Create an admin account unless the email is already registered."""
    store = get_data_store()
    email = email.lower()
    if store.scalar(select(users.c.id).where(users.c.email == email)) is not None:
        logger.info(f"User {email} already exists, skipping admin account")
        return False

    now = datetime.now(timezone.utc)
    store.insert(
        insert(users).values(
            name="Admin User",
            email=email,
            password_hash=hash_password(password),
            role="admin",
            created_at=now,
            updated_at=now,
        )
    )
    return True


async def main() -> None:
    """Create tables and load starter data."""
    logger.info("Starting database seed...")

    try:
        store = get_data_store()
        store.create_tables()
        logger.info("Tables verified")

        created = await seed_catalog(CatalogService(store))
        logger.info(f"Sample products created: {created}")

        admin_email = os.environ.get("SEED_ADMIN_EMAIL")
        admin_password = os.environ.get("SEED_ADMIN_PASSWORD")
        if admin_email and admin_password:
            if seed_admin(admin_email, admin_password):
                logger.info(f"Admin account created: {admin_email}")
        else:
            logger.info("SEED_ADMIN_EMAIL/SEED_ADMIN_PASSWORD not set, skipping admin account")

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

    logger.info("Seed complete!")


if __name__ == "__main__":
    asyncio.run(main())
