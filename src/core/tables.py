"""Relational table definitions shared by the gateway, migrations and tests."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("phone", String(20)),
    Column("role", String(20), nullable=False, server_default="customer"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("role IN ('customer', 'admin')", name="ck_users_role"),
)

categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("slug", String(100), nullable=False, unique=True),
    Column("description", Text),
    Column("image", String(512)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("price", Numeric(10, 2), nullable=False),
    Column("original_price", Numeric(10, 2)),
    Column("image", String(512)),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="SET NULL")),
    Column("stock", Integer, nullable=False, server_default="0"),
    Column("rating", Numeric(3, 1), nullable=False, server_default="0"),
    Column("reviews", Integer, nullable=False, server_default="0"),
    Column("featured", Boolean, nullable=False, server_default="0"),
    Column("is_new", Boolean, nullable=False, server_default="0"),
    Column("is_budget", Boolean, nullable=False, server_default="0"),
    Column("is_luxury", Boolean, nullable=False, server_default="0"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
)

shipping_addresses = Table(
    "shipping_addresses",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("full_name", String(100), nullable=False),
    Column("address_line1", String(255), nullable=False),
    Column("address_line2", String(255)),
    Column("city", String(100), nullable=False),
    Column("state", String(100), nullable=False),
    Column("zip_code", String(20), nullable=False),
    Column("country", String(100), nullable=False),
    Column("phone", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

user_addresses = Table(
    "user_addresses",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("full_name", String(100), nullable=False),
    Column("address_line1", String(255), nullable=False),
    Column("address_line2", String(255)),
    Column("city", String(100), nullable=False),
    Column("state", String(100), nullable=False),
    Column("zip_code", String(20), nullable=False),
    Column("country", String(100), nullable=False),
    Column("phone", String(20), nullable=False),
    Column("is_default", Boolean, nullable=False, server_default="0"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column(
        "shipping_address_id",
        Integer,
        ForeignKey("shipping_addresses.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("payment_method", String(32), nullable=False),
    Column("payment_status", String(16), nullable=False, server_default="pending"),
    Column("order_status", String(16), nullable=False, server_default="processing"),
    Column("subtotal", Numeric(10, 2), nullable=False),
    Column("tax", Numeric(10, 2), nullable=False, server_default="0"),
    Column("shipping_cost", Numeric(10, 2), nullable=False, server_default="0"),
    Column("total", Numeric(10, 2), nullable=False),
    Column("payment_intent_id", String(255)),
    Column("payment_session_id", String(255)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "payment_method IN ('card', 'wallet', 'cash_on_delivery')",
        name="ck_orders_payment_method",
    ),
    CheckConstraint(
        "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
        name="ck_orders_payment_status",
    ),
    CheckConstraint(
        "order_status IN ('processing', 'shipped', 'delivered', 'cancelled')",
        name="ck_orders_order_status",
    ),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(10, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
)

cart_items = Table(
    "cart_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
    CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
)

favorites = Table(
    "favorites",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "product_id", name="uq_favorites_user_product"),
)

newsletter_subscribers = Table(
    "newsletter_subscribers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(100)),
    Column("status", String(16), nullable=False, server_default="active"),
    Column("source", String(50), nullable=False, server_default="Website"),
    Column("subscribed_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("status IN ('active', 'unsubscribed')", name="ck_newsletter_status"),
)
