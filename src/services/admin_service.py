"""Admin dashboard and reporting service."""

import logging
import math
from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import distinct, func, or_, select

from src.api.middleware.error_handler import ValidationError
from src.core.database import DataStore
from src.core.tables import categories, order_items, orders, products, users
from src.services.order_service import format_order_number, to_money

logger = logging.getLogger(__name__)

_CUSTOMER_SORTS = {
    "newest": users.c.created_at.desc(),
    "oldest": users.c.created_at.asc(),
    "name_asc": users.c.name.asc(),
    "name_desc": users.c.name.desc(),
}


def period_key(moment: datetime, group_by: str) -> str:
    """Label the report bucket a timestamp falls into.

    Days are YYYY-MM-DD, ISO weeks YYYY-Www, months YYYY-MM.
    """
    if group_by == "month":
        return f"{moment.year:04d}-{moment.month:02d}"
    if group_by == "week":
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    return moment.date().isoformat()


def _month_starts(today: date, count: int) -> list[date]:
    """First day of the current month and the count - 1 months before it, oldest first."""
    year, month = today.year, today.month
    starts = []
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


class AdminService:
    """Read-only reporting queries for the admin console."""

    def __init__(self, store: DataStore) -> None:
        """Initialize admin service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store

    async def dashboard_stats(self, today: date | None = None) -> dict[str, Any]:
        """Collect headline dashboard numbers.

        Args:
            today: Reference date for the monthly window; defaults to now (UTC).

        Returns:
            dict: totals, sales_by_month for the last six months and top 3 products.
        """
        paid = orders.c.payment_status == "paid"

        total_sales = self.store.scalar(select(func.coalesce(func.sum(orders.c.total), 0)).where(paid))
        total_orders = self.store.scalar(select(func.count()).select_from(orders))
        total_customers = self.store.scalar(select(func.count(distinct(orders.c.user_id))))
        total_products = self.store.scalar(select(func.count()).select_from(products))

        months = _month_starts(today or datetime.now(timezone.utc).date(), 6)
        window_start = datetime.combine(months[0], time.min)
        monthly: OrderedDict[str, Decimal] = OrderedDict(
            (f"{start.year:04d}-{start.month:02d}", Decimal("0.00")) for start in months
        )
        for row in self.store.fetch_all(
            select(orders.c.total, orders.c.created_at).where(paid, orders.c.created_at >= window_start)
        ):
            key = period_key(row["created_at"], "month")
            if key in monthly:
                monthly[key] += to_money(row["total"])

        top_products = self.store.fetch_all(
            select(
                products.c.id,
                products.c.name,
                products.c.image,
                func.sum(order_items.c.quantity).label("total_sold"),
            )
            .select_from(
                order_items.join(products, products.c.id == order_items.c.product_id).join(
                    orders, orders.c.id == order_items.c.order_id
                )
            )
            .where(paid)
            .group_by(products.c.id, products.c.name, products.c.image)
            .order_by(func.sum(order_items.c.quantity).desc())
            .limit(3)
        )

        return {
            "total_sales": to_money(total_sales),
            "total_orders": total_orders,
            "total_customers": total_customers,
            "total_products": total_products,
            "sales_by_month": [{"month": month, "sales": sales} for month, sales in monthly.items()],
            "top_products": [{**row, "total_sold": int(row["total_sold"])} for row in top_products],
        }

    async def recent_orders(self, limit: int = 10) -> list[dict[str, Any]]:
        """Latest orders with customer and item count."""
        item_count = (
            select(func.count())
            .select_from(order_items)
            .where(order_items.c.order_id == orders.c.id)
            .scalar_subquery()
        )
        rows = self.store.fetch_all(
            select(
                orders.c.id,
                orders.c.total,
                orders.c.order_status,
                orders.c.payment_status,
                orders.c.created_at,
                users.c.name.label("customer_name"),
                users.c.email.label("customer_email"),
                item_count.label("item_count"),
            )
            .select_from(orders.join(users, users.c.id == orders.c.user_id))
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
            .limit(limit)
        )
        for row in rows:
            row["order_number"] = format_order_number(row["id"], row["created_at"])
            row["total"] = to_money(row["total"])
        return rows

    async def low_stock_products(self, threshold: int = 10, limit: int = 10) -> list[dict[str, Any]]:
        """Products with stock at or below the threshold, scarcest first."""
        return self.store.fetch_all(
            select(
                products.c.id,
                products.c.name,
                products.c.stock,
                products.c.price,
                categories.c.name.label("category_name"),
                products.c.image,
            )
            .select_from(products.outerjoin(categories, categories.c.id == products.c.category_id))
            .where(products.c.stock <= threshold)
            .order_by(products.c.stock.asc(), products.c.id)
            .limit(limit)
        )

    async def list_customers(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort: str = "newest",
    ) -> dict[str, Any]:
        """List customer accounts with their order counts.

        Returns:
            dict: customers, page, pages, total.
        """
        conditions = [users.c.role == "customer"]
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(func.lower(users.c.name).like(pattern), func.lower(users.c.email).like(pattern))
            )

        order_count = (
            select(func.count())
            .select_from(orders)
            .where(orders.c.user_id == users.c.id)
            .scalar_subquery()
        )

        total = self.store.scalar(select(func.count()).select_from(users).where(*conditions))
        customers = self.store.fetch_all(
            select(
                users.c.id,
                users.c.name,
                users.c.email,
                users.c.phone,
                users.c.created_at,
                order_count.label("order_count"),
            )
            .where(*conditions)
            .order_by(_CUSTOMER_SORTS.get(sort, _CUSTOMER_SORTS["newest"]), users.c.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        return {
            "customers": customers,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
        }

    def _item_sales(self, group_columns: list[Any], join: Any, window: list[Any]) -> list[dict[str, Any]]:
        revenue = func.sum(order_items.c.quantity * order_items.c.price)
        rows = self.store.fetch_all(
            select(
                *group_columns,
                func.sum(order_items.c.quantity).label("quantity_sold"),
                revenue.label("total_sales"),
            )
            .select_from(join)
            .where(*window)
            .group_by(*group_columns)
            .order_by(revenue.desc())
            .limit(10)
        )
        return [
            {
                **row,
                "quantity_sold": int(row["quantity_sold"]),
                "total_sales": to_money(row["total_sales"]),
            }
            for row in rows
        ]

    async def sales_report(self, start_date: date, end_date: date, group_by: str = "day") -> dict[str, Any]:
        """Paid sales between two dates (inclusive), bucketed by day, week or month.

        Buckets are computed here rather than in SQL so the report does not
        depend on a dialect's date formatting functions.

        Raises:
            ValidationError: If the range is inverted or group_by is unknown.
        """
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        if group_by not in ("day", "week", "month"):
            raise ValidationError("group_by must be one of day, week, month")

        window = [
            orders.c.payment_status == "paid",
            orders.c.created_at >= datetime.combine(start_date, time.min),
            orders.c.created_at < datetime.combine(end_date + timedelta(days=1), time.min),
        ]

        buckets: OrderedDict[str, list[Decimal]] = OrderedDict()
        paid_orders = self.store.fetch_all(
            select(orders.c.total, orders.c.created_at).where(*window).order_by(orders.c.created_at)
        )
        for row in paid_orders:
            buckets.setdefault(period_key(row["created_at"], group_by), []).append(to_money(row["total"]))

        sales_data = [
            {
                "period": period,
                "order_count": len(totals),
                "total_sales": sum(totals, Decimal("0.00")),
                "average_order_value": to_money(sum(totals, Decimal("0")) / len(totals)),
            }
            for period, totals in buckets.items()
        ]

        product_sales = self._item_sales(
            [products.c.id, products.c.name],
            order_items.join(products, products.c.id == order_items.c.product_id).join(
                orders, orders.c.id == order_items.c.order_id
            ),
            window,
        )
        category_sales = self._item_sales(
            [categories.c.id, categories.c.name],
            order_items.join(products, products.c.id == order_items.c.product_id)
            .join(categories, categories.c.id == products.c.category_id)
            .join(orders, orders.c.id == order_items.c.order_id),
            window,
        )

        all_totals = [total for totals in buckets.values() for total in totals]
        total_sales = sum(all_totals, Decimal("0.00"))
        logger.info(
            "Sales report %s..%s by %s: %d paid order(s)",
            start_date,
            end_date,
            group_by,
            len(all_totals),
        )

        return {
            "sales_data": sales_data,
            "product_sales": product_sales,
            "category_sales": category_sales,
            "summary": {
                "start_date": start_date,
                "end_date": end_date,
                "total_orders": len(all_totals),
                "total_sales": total_sales,
                "average_order_value": to_money(total_sales / len(all_totals)) if all_totals else Decimal("0.00"),
            },
        }
