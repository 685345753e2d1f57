"""Pytest configuration and fixtures."""

import hashlib
import hmac
import json
import os
import time
from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import insert

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_stripe_publishable_key")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")

TEST_JWT_SECRET = os.environ["JWT_SECRET"]
TEST_WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    # Clear the cache to ensure fresh settings
    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    # Clean up cache after tests
    get_settings.cache_clear()


@pytest.fixture
def store() -> Generator[Any, None, None]:
    """Provide a fresh in-memory database with every table created."""
    from src.core.database import create_data_store

    data_store = create_data_store("sqlite://")
    data_store.create_tables()
    yield data_store
    data_store.engine.dispose()


@pytest.fixture
def make_user(store: Any) -> Callable[..., int]:
    """Factory that inserts a user and returns its id."""
    from src.core.tables import users

    counter = {"n": 0}

    def _make(name: str = "Test User", email: str | None = None, role: str = "customer", **extra: Any) -> int:
        counter["n"] += 1
        return store.insert(
            insert(users).values(
                name=name,
                email=email or f"user{counter['n']}@example.com",
                password_hash=extra.pop("password_hash", "not-a-real-hash"),
                role=role,
                **extra,
            )
        )

    return _make


@pytest.fixture
def make_category(store: Any) -> Callable[..., int]:
    """Factory that inserts a category and returns its id."""
    from src.core.tables import categories

    def _make(name: str = "Clothing", slug: str | None = None, **extra: Any) -> int:
        return store.insert(
            insert(categories).values(name=name, slug=slug or name.lower().replace(" ", "-"), **extra)
        )

    return _make


@pytest.fixture
def make_product(store: Any) -> Callable[..., int]:
    """Factory that inserts a product and returns its id."""
    from src.core.tables import products

    def _make(
        name: str = "Baby Onesie",
        price: str | Decimal = "19.99",
        stock: int = 10,
        **extra: Any,
    ) -> int:
        return store.insert(
            insert(products).values(name=name, price=Decimal(str(price)), stock=stock, **extra)
        )

    return _make


def make_token(
    user_id: int,
    email: str | None = "user@example.com",
    role: str = "customer",
    secret: str = TEST_JWT_SECRET,
    expires_in: int = 3600,
) -> str:
    """Mint an HS256 access token the way the auth endpoints do."""
    now = int(time.time())
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a token."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(make_user: Callable[..., int]) -> dict[str, Any]:
    """A customer account with ready-made auth headers."""
    user_id = make_user(name="Jane Customer", email="jane@example.com")
    return {
        "id": user_id,
        "email": "jane@example.com",
        "headers": bearer(make_token(user_id, "jane@example.com", "customer")),
    }


@pytest.fixture
def admin(make_user: Callable[..., int]) -> dict[str, Any]:
    """An admin account with ready-made auth headers."""
    user_id = make_user(name="Ada Admin", email="admin@example.com", role="admin")
    return {
        "id": user_id,
        "email": "admin@example.com",
        "headers": bearer(make_token(user_id, "admin@example.com", "admin")),
    }


@pytest.fixture
def client(store: Any) -> Generator[TestClient, None, None]:
    """Provide a test client wired to the per-test database.

    Args:
        store: In-memory data store fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.core.database import get_data_store
    from src.main import app

    app.dependency_overrides[get_data_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def shipping_address() -> dict[str, str]:
    """A complete shipping address payload."""
    return {
        "full_name": "Jane Customer",
        "address_line1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
        "phone": "555-0100",
    }


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Expose make_token to tests that need custom claims."""
    return make_token


def sign_stripe_payload(payload: bytes, secret: str = TEST_WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header for a raw webhook body."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def stripe_signature() -> Callable[..., str]:
    """Expose sign_stripe_payload to webhook tests."""
    return sign_stripe_payload


@pytest.fixture
def webhook_event() -> Callable[..., bytes]:
    """Factory for serialized Stripe webhook events."""

    def _make(event_type: str, data_object: dict[str, Any], event_id: str = "evt_test_1") -> bytes:
        return json.dumps({
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }).encode("utf-8")

    return _make
