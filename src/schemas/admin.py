"""Admin reporting Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.common import PageInfo

ReportGrouping = Literal["day", "week", "month"]
CustomerSort = Literal["newest", "oldest", "name_asc", "name_desc"]


class MonthlySales(BaseModel):
    """Paid sales for one calendar month."""

    month: str = Field(description="YYYY-MM")
    sales: Decimal


class TopProduct(BaseModel):
    """A best-selling product."""

    id: int
    name: str
    image: str | None = None
    total_sold: int


class DashboardStats(BaseModel):
    """Headline numbers for the admin dashboard."""

    total_sales: Decimal = Field(description="Sum of paid order totals")
    total_orders: int
    total_customers: int = Field(description="Distinct users who placed an order")
    total_products: int
    sales_by_month: list[MonthlySales] = Field(description="Last six months, oldest first")
    top_products: list[TopProduct]


class RecentOrder(BaseModel):
    """Order row for the dashboard's recent-orders widget."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    total: Decimal
    order_status: str
    payment_status: str
    customer_name: str | None = None
    customer_email: str | None = None
    item_count: int
    created_at: datetime


class LowStockProduct(BaseModel):
    """Product at or below the stock threshold."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    stock: int
    price: Decimal
    category_name: str | None = None
    image: str | None = None


class CustomerSummary(BaseModel):
    """Customer account with order count."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str | None = None
    created_at: datetime
    order_count: int


class CustomerListResponse(PageInfo):
    """Paginated customer listing."""

    customers: list[CustomerSummary]


class SalesPeriod(BaseModel):
    """Paid sales within one report bucket."""

    period: str
    order_count: int
    total_sales: Decimal
    average_order_value: Decimal


class ItemSales(BaseModel):
    """Units and revenue for a product or category."""

    id: int
    name: str
    quantity_sold: int
    total_sales: Decimal


class SalesSummary(BaseModel):
    """Totals across the whole report range."""

    start_date: date
    end_date: date
    total_orders: int
    total_sales: Decimal
    average_order_value: Decimal


class SalesReport(BaseModel):
    """Sales report over a date range."""

    sales_data: list[SalesPeriod]
    product_sales: list[ItemSales]
    category_sales: list[ItemSales]
    summary: SalesSummary
