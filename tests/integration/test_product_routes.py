"""Integration tests for product and category API endpoints."""

from decimal import Decimal
from typing import Any, Callable

from fastapi.testclient import TestClient


class TestProductRoutes:
    """Tests for /api/v1/products."""

    def test_list_products_is_public(
        self,
        client: TestClient,
        make_category: Callable[..., int],
        make_product: Callable[..., int],
    ) -> None:
        """Test listing with search, category, price filter and sort."""
        toys = make_category("Toys")
        make_product("Rattle", "10.00", category_id=toys)
        make_product("Blocks", "25.00", category_id=toys)
        make_product("Bib", "4.00")

        response = client.get(
            "/api/v1/products",
            params={"category": "Toys", "min_price": "5", "sort": "price,desc", "limit": 10},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["page"] == 1
        assert [p["name"] for p in data["products"]] == ["Blocks", "Rattle"]
        assert data["products"][0]["category_name"] == "Toys"

    def test_get_product(self, client: TestClient, make_product: Callable[..., int]) -> None:
        product_id = make_product("Stroller", "199.99", stock=2)

        response = client.get(f"/api/v1/products/{product_id}")

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("199.99")

    def test_collections(self, client: TestClient, make_product: Callable[..., int]) -> None:
        """Test that collection routes resolve ahead of the product id route."""
        make_product("Crib", featured=True, is_luxury=True)
        make_product("Sock", is_budget=True)
        make_product("Mobile", is_new=True)

        assert [p["name"] for p in client.get("/api/v1/products/featured").json()] == ["Crib"]
        assert [p["name"] for p in client.get("/api/v1/products/new").json()] == ["Mobile"]
        assert [p["name"] for p in client.get("/api/v1/products/budget").json()] == ["Sock"]
        assert [p["name"] for p in client.get("/api/v1/products/luxury").json()] == ["Crib"]
        assert client.get("/api/v1/products/featured", params={"limit": 0}).status_code == 400

    def test_related_products(
        self,
        client: TestClient,
        make_category: Callable[..., int],
        make_product: Callable[..., int],
    ) -> None:
        toys = make_category("Toys")
        rattle = make_product("Rattle", category_id=toys)
        make_product("Blocks", category_id=toys)
        make_product("Bib")

        response = client.get(f"/api/v1/products/related/{rattle}")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Blocks"]
        assert client.get("/api/v1/products/related/999").status_code == 404

    def test_admin_creates_updates_and_deletes(self, client: TestClient, admin: dict[str, Any]) -> None:
        created = client.post(
            "/api/v1/products",
            json={"name": "Night Light", "price": "14.50", "stock": 6, "is_new": True},
            headers=admin["headers"],
        )
        assert created.status_code == 201
        product_id = created.json()["id"]

        updated = client.put(f"/api/v1/products/{product_id}", json={"price": "12.00"}, headers=admin["headers"])
        assert updated.status_code == 200
        assert Decimal(updated.json()["price"]) == Decimal("12.00")
        assert updated.json()["stock"] == 6

        deleted = client.delete(f"/api/v1/products/{product_id}", headers=admin["headers"])
        assert deleted.status_code == 204
        assert client.get(f"/api/v1/products/{product_id}").status_code == 404

    def test_customers_cannot_write(self, client: TestClient, customer: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/products",
            json={"name": "Night Light", "price": "14.50"},
            headers=customer["headers"],
        )

        assert response.status_code == 403

    def test_negative_price_rejected(self, client: TestClient, admin: dict[str, Any]) -> None:
        response = client.post("/api/v1/products", json={"name": "Oops", "price": "-1"}, headers=admin["headers"])

        assert response.status_code == 400


class TestCategoryRoutes:
    """Tests for /api/v1/categories."""

    def test_list_and_get_by_slug(
        self,
        client: TestClient,
        make_category: Callable[..., int],
        make_product: Callable[..., int],
    ) -> None:
        bath = make_category("Bath Time")
        make_product("Duck", "3.00", category_id=bath)

        listing = client.get("/api/v1/categories")
        by_slug = client.get("/api/v1/categories/bath-time")
        products = client.get("/api/v1/categories/bath-time/products")

        assert listing.status_code == 200
        assert listing.json()[0]["product_count"] == 1
        assert by_slug.json()["id"] == bath
        assert products.json()["category"]["name"] == "Bath Time"
        assert [p["name"] for p in products.json()["products"]] == ["Duck"]

    def test_admin_lifecycle(self, client: TestClient, admin: dict[str, Any]) -> None:
        created = client.post("/api/v1/categories", json={"name": "Car Seats"}, headers=admin["headers"])
        assert created.status_code == 201
        assert created.json()["slug"] == "car-seats"
        category_id = created.json()["id"]

        duplicate = client.post("/api/v1/categories", json={"name": "Car Seats"}, headers=admin["headers"])
        assert duplicate.status_code == 400

        renamed = client.put(f"/api/v1/categories/{category_id}", json={"name": "Travel"}, headers=admin["headers"])
        assert renamed.json()["slug"] == "travel"

        assert client.delete(f"/api/v1/categories/{category_id}", headers=admin["headers"]).status_code == 204
        assert client.get("/api/v1/categories/travel").status_code == 404

    def test_delete_non_empty_category(
        self,
        client: TestClient,
        admin: dict[str, Any],
        make_category: Callable[..., int],
        make_product: Callable[..., int],
    ) -> None:
        category_id = make_category("Toys")
        make_product(category_id=category_id)

        response = client.delete(f"/api/v1/categories/{category_id}", headers=admin["headers"])

        assert response.status_code == 400
