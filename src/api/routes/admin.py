"""Admin console API routes. Every endpoint requires the admin role."""

from datetime import date

from fastapi import APIRouter, Query

from src.api.deps import AdminServiceDep, AdminUser, NewsletterServiceDep, OrderServiceDep
from src.schemas.admin import (
    CustomerListResponse,
    CustomerSort,
    DashboardStats,
    LowStockProduct,
    RecentOrder,
    ReportGrouping,
    SalesReport,
)
from src.schemas.newsletter import SubscriberListResponse, SubscriberSort, SubscriberStatus
from src.schemas.order import AdminOrderListResponse, OrderStatus

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/orders",
    response_model=AdminOrderListResponse,
    summary="List all orders",
)
async def list_all_orders(
    _admin: AdminUser,
    service: OrderServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: OrderStatus | None = Query(default=None, description="Filter by order status"),
) -> AdminOrderListResponse:
    """List every order with customer details and item counts."""
    return AdminOrderListResponse(**await service.list_all_orders(page=page, limit=limit, status=status))


@router.get(
    "/customers",
    response_model=CustomerListResponse,
    summary="List customers",
)
async def list_customers(
    _admin: AdminUser,
    service: AdminServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=100),
    sort: CustomerSort = Query(default="newest"),
) -> CustomerListResponse:
    """List customer accounts with order counts."""
    return CustomerListResponse(**await service.list_customers(page=page, limit=limit, search=search, sort=sort))


@router.get(
    "/dashboard/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
)
async def dashboard_stats(_admin: AdminUser, service: AdminServiceDep) -> DashboardStats:
    """Headline sales, order, customer and product numbers."""
    return DashboardStats(**await service.dashboard_stats())


@router.get(
    "/dashboard/recent-orders",
    response_model=list[RecentOrder],
    summary="Recent orders",
)
async def recent_orders(
    _admin: AdminUser,
    service: AdminServiceDep,
    limit: int = Query(default=10, ge=1, le=50),
) -> list[RecentOrder]:
    """Latest orders across all customers."""
    return [RecentOrder(**row) for row in await service.recent_orders(limit=limit)]


@router.get(
    "/dashboard/low-stock",
    response_model=list[LowStockProduct],
    summary="Low stock products",
)
async def low_stock_products(
    _admin: AdminUser,
    service: AdminServiceDep,
    threshold: int = Query(default=10, ge=0),
) -> list[LowStockProduct]:
    """Products at or below the stock threshold."""
    return [LowStockProduct(**row) for row in await service.low_stock_products(threshold=threshold)]


@router.get(
    "/reports/sales",
    response_model=SalesReport,
    summary="Sales report",
    description="Paid sales between two dates (inclusive), grouped by day, ISO week or month.",
)
async def sales_report(
    _admin: AdminUser,
    service: AdminServiceDep,
    start_date: date = Query(..., description="First day of the range"),
    end_date: date = Query(..., description="Last day of the range"),
    group_by: ReportGrouping = Query(default="day"),
) -> SalesReport:
    """Build a sales report.

    Raises:
        ValidationError: 400 if end_date is before start_date.
    """
    return SalesReport(**await service.sales_report(start_date, end_date, group_by))


@router.get(
    "/newsletter/subscribers",
    response_model=SubscriberListResponse,
    summary="List newsletter subscribers",
)
async def list_subscribers(
    _admin: AdminUser,
    service: NewsletterServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: SubscriberStatus | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    sort: SubscriberSort = Query(default="newest"),
) -> SubscriberListResponse:
    """List newsletter subscribers."""
    result = await service.list_subscribers(page=page, limit=limit, status=status, search=search, sort=sort)
    return SubscriberListResponse(**result)
