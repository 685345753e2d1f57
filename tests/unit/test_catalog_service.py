"""Unit tests for CatalogService."""

from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import insert

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.tables import order_items, orders, shipping_addresses
from src.schemas.category import CategoryCreate, CategoryUpdate
from src.schemas.product import ProductCreate, ProductUpdate
from src.services.catalog_service import CatalogService, slugify


@pytest.fixture
def catalog(store: Any) -> CatalogService:
    """Create CatalogService bound to the test database."""
    return CatalogService(store)


@pytest.fixture
def stocked_catalog(make_category: Any, make_product: Any) -> dict[str, int]:
    """A few products across two categories."""
    clothing = make_category("Clothing")
    toys = make_category("Toys")
    return {
        "clothing": clothing,
        "toys": toys,
        "onesie": make_product("Cotton Onesie", "12.00", description="Soft organic cotton", category_id=clothing),
        "hat": make_product("Sun Hat", "8.50", category_id=clothing),
        "rattle": make_product("Wooden Rattle", "15.00", category_id=toys),
        "blocks": make_product("Stacking Blocks", "30.00", category_id=toys),
    }


def test_slugify() -> None:
    assert slugify("Baby Gear & Toys") == "baby-gear-toys"
    assert slugify("  Feeding  ") == "feeding"


class TestListProducts:
    """Tests for list_products filtering, sorting and pagination."""

    @pytest.mark.asyncio
    async def test_search_matches_name_and_description(
        self, catalog: CatalogService, stocked_catalog: dict[str, int]
    ) -> None:
        by_name = await catalog.list_products(search="rattle")
        by_description = await catalog.list_products(search="ORGANIC")

        assert [p["id"] for p in by_name["products"]] == [stocked_catalog["rattle"]]
        assert [p["id"] for p in by_description["products"]] == [stocked_catalog["onesie"]]

    @pytest.mark.asyncio
    async def test_category_by_id_or_name(self, catalog: CatalogService, stocked_catalog: dict[str, int]) -> None:
        by_id = await catalog.list_products(category=str(stocked_catalog["toys"]))
        by_name = await catalog.list_products(category="toys")

        assert by_id["total"] == by_name["total"] == 2
        assert {p["category_name"] for p in by_name["products"]} == {"Toys"}

    @pytest.mark.asyncio
    async def test_price_range_and_sort(self, catalog: CatalogService, stocked_catalog: dict[str, int]) -> None:
        result = await catalog.list_products(min_price=Decimal("8.50"), max_price=Decimal("15.00"), sort="price,asc")

        assert [p["name"] for p in result["products"]] == ["Sun Hat", "Cotton Onesie", "Wooden Rattle"]

    @pytest.mark.asyncio
    async def test_pagination(self, catalog: CatalogService, stocked_catalog: dict[str, int]) -> None:
        first = await catalog.list_products(page=1, limit=3, sort="name,asc")
        second = await catalog.list_products(page=2, limit=3, sort="name,asc")

        assert first["total"] == 4
        assert first["pages"] == 2
        assert len(first["products"]) == 3
        assert [p["name"] for p in second["products"]] == ["Wooden Rattle"]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, catalog: CatalogService) -> None:
        result = await catalog.list_products()
        assert result == {"products": [], "page": 1, "pages": 0, "total": 0}


class TestCollections:
    """Tests for storefront collections and related products."""

    @pytest.mark.asyncio
    async def test_collections_filter_by_flag_newest_first(
        self, catalog: CatalogService, make_product: Any
    ) -> None:
        older = make_product("Crib", featured=True, is_luxury=True)
        newer = make_product("Mobile", featured=True, is_new=True)
        make_product("Sock", is_budget=True)

        featured = await catalog.list_collection("featured")
        new = await catalog.list_collection("new")
        luxury = await catalog.list_collection("luxury")
        budget = await catalog.list_collection("budget")

        assert [p["id"] for p in featured] == [newer, older]
        assert [p["name"] for p in new] == ["Mobile"]
        assert [p["name"] for p in luxury] == ["Crib"]
        assert [p["name"] for p in budget] == ["Sock"]

    @pytest.mark.asyncio
    async def test_collection_limit(self, catalog: CatalogService, make_product: Any) -> None:
        for i in range(10):
            make_product(f"Toy {i}", featured=True)

        assert len(await catalog.list_collection("featured")) == 8
        assert len(await catalog.list_collection("featured", limit=3)) == 3

    @pytest.mark.asyncio
    async def test_unknown_collection(self, catalog: CatalogService) -> None:
        with pytest.raises(NotFoundError):
            await catalog.list_collection("clearance")

    @pytest.mark.asyncio
    async def test_related_share_category_and_exclude_self(
        self, catalog: CatalogService, stocked_catalog: dict[str, int]
    ) -> None:
        related = await catalog.get_related_products(stocked_catalog["rattle"])

        assert [p["id"] for p in related] == [stocked_catalog["blocks"]]

    @pytest.mark.asyncio
    async def test_related_limit(self, catalog: CatalogService, make_category: Any, make_product: Any) -> None:
        toys = make_category("Toys")
        anchor = make_product("Rattle", category_id=toys)
        for i in range(6):
            make_product(f"Toy {i}", category_id=toys)

        related = await catalog.get_related_products(anchor)

        assert len(related) == 4
        assert anchor not in [p["id"] for p in related]

    @pytest.mark.asyncio
    async def test_related_without_category(self, catalog: CatalogService, make_product: Any) -> None:
        loose = make_product("Bib")
        make_product("Spoon")

        assert await catalog.get_related_products(loose) == []

    @pytest.mark.asyncio
    async def test_related_missing_product(self, catalog: CatalogService) -> None:
        with pytest.raises(NotFoundError):
            await catalog.get_related_products(999)


class TestProductWrites:
    """Tests for product create, update and delete."""

    @pytest.mark.asyncio
    async def test_create_product(self, catalog: CatalogService, make_category: Any) -> None:
        category_id = make_category("Feeding")

        product = await catalog.create_product(
            ProductCreate(name="Bottle", price=Decimal("9.99"), stock=25, category_id=category_id)
        )

        assert product["name"] == "Bottle"
        assert product["category_name"] == "Feeding"
        assert product["stock"] == 25

    @pytest.mark.asyncio
    async def test_create_with_unknown_category(self, catalog: CatalogService) -> None:
        with pytest.raises(ValidationError):
            await catalog.create_product(ProductCreate(name="Bottle", price=Decimal("9.99"), category_id=42))

    @pytest.mark.asyncio
    async def test_update_only_supplied_fields(self, catalog: CatalogService, make_product: Any) -> None:
        product_id = make_product("Bib", "4.00", stock=3)

        product = await catalog.update_product(product_id, ProductUpdate(stock=7))

        assert product["stock"] == 7
        assert product["name"] == "Bib"

    @pytest.mark.asyncio
    async def test_update_missing(self, catalog: CatalogService) -> None:
        with pytest.raises(NotFoundError):
            await catalog.update_product(999, ProductUpdate(stock=1))

    @pytest.mark.asyncio
    async def test_delete_product(self, catalog: CatalogService, make_product: Any) -> None:
        product_id = make_product()

        await catalog.delete_product(product_id)

        with pytest.raises(NotFoundError):
            await catalog.get_product(product_id)
        with pytest.raises(NotFoundError):
            await catalog.delete_product(product_id)

    @pytest.mark.asyncio
    async def test_delete_ordered_product_refused(
        self,
        catalog: CatalogService,
        store: Any,
        make_user: Any,
        make_product: Any,
        shipping_address: dict[str, str],
    ) -> None:
        user_id = make_user()
        product_id = make_product()
        address_id = store.insert(insert(shipping_addresses).values(user_id=user_id, **shipping_address))
        order_id = store.insert(
            insert(orders).values(
                user_id=user_id,
                shipping_address_id=address_id,
                payment_method="card",
                subtotal=Decimal("19.99"),
                total=Decimal("19.99"),
            )
        )
        store.insert(insert(order_items).values(order_id=order_id, product_id=product_id, quantity=1, price=Decimal("19.99")))

        with pytest.raises(ValidationError):
            await catalog.delete_product(product_id)
        assert (await catalog.get_product(product_id))["id"] == product_id


class TestCategories:
    """Tests for category operations."""

    @pytest.mark.asyncio
    async def test_list_with_counts(self, catalog: CatalogService, stocked_catalog: dict[str, int], make_category: Any) -> None:
        make_category("Bath")

        result = await catalog.list_categories()

        assert [(c["name"], c["product_count"]) for c in result] == [("Bath", 0), ("Clothing", 2), ("Toys", 2)]

    @pytest.mark.asyncio
    async def test_get_by_id_or_slug(self, catalog: CatalogService, stocked_catalog: dict[str, int]) -> None:
        by_slug = await catalog.get_category("toys")
        by_id = await catalog.get_category(stocked_catalog["toys"])

        assert by_slug["id"] == by_id["id"] == stocked_catalog["toys"]
        with pytest.raises(NotFoundError):
            await catalog.get_category("strollers")

    @pytest.mark.asyncio
    async def test_category_products(self, catalog: CatalogService, stocked_catalog: dict[str, int]) -> None:
        result = await catalog.get_category_products("clothing", limit=1)

        assert result["category"]["slug"] == "clothing"
        assert result["total"] == 2
        assert result["pages"] == 2
        assert len(result["products"]) == 1

    @pytest.mark.asyncio
    async def test_create_generates_slug(self, catalog: CatalogService) -> None:
        category = await catalog.create_category(CategoryCreate(name="Nursery Decor"))

        assert category["slug"] == "nursery-decor"
        assert category["product_count"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, catalog: CatalogService, make_category: Any) -> None:
        make_category("Toys")

        with pytest.raises(ValidationError):
            await catalog.create_category(CategoryCreate(name="Toys"))

    @pytest.mark.asyncio
    async def test_rename_regenerates_slug(self, catalog: CatalogService, make_category: Any) -> None:
        category_id = make_category("Bath")

        category = await catalog.update_category(category_id, CategoryUpdate(name="Bath Time"))

        assert category["slug"] == "bath-time"

    @pytest.mark.asyncio
    async def test_update_missing(self, catalog: CatalogService) -> None:
        with pytest.raises(NotFoundError):
            await catalog.update_category(999, CategoryUpdate(description="x"))

    @pytest.mark.asyncio
    async def test_delete_refused_while_products_remain(
        self, catalog: CatalogService, stocked_catalog: dict[str, int], make_category: Any
    ) -> None:
        empty = make_category("Empty")

        with pytest.raises(ValidationError):
            await catalog.delete_category(stocked_catalog["toys"])

        await catalog.delete_category(empty)
        with pytest.raises(NotFoundError):
            await catalog.get_category(empty)
