"""Newsletter subscription service."""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, insert, or_, select, update

from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.core.database import DataStore
from src.core.tables import newsletter_subscribers

logger = logging.getLogger(__name__)

_SORTS = {
    "newest": newsletter_subscribers.c.subscribed_at.desc(),
    "oldest": newsletter_subscribers.c.subscribed_at.asc(),
    "email_asc": newsletter_subscribers.c.email.asc(),
    "email_desc": newsletter_subscribers.c.email.desc(),
}


class NewsletterService:
    """Service for newsletter subscriptions."""

    def __init__(self, store: DataStore) -> None:
        """Initialize newsletter service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store

    def _find(self, email: str) -> dict[str, Any] | None:
        return self.store.fetch_one(
            select(newsletter_subscribers).where(
                func.lower(newsletter_subscribers.c.email) == email.lower()
            )
        )

    async def subscribe(self, email: str, name: str | None = None, source: str = "Website") -> dict[str, Any]:
        """Subscribe an address, or reactivate one that unsubscribed.

        Args:
            email: Subscriber address.
            name: Optional subscriber name.
            source: Where the signup came from.

        Returns:
            dict: subscriber row and created flag (False on reactivation).

        Raises:
            ValidationError: If the address is already an active subscriber.
        """
        existing = self._find(email)

        if existing is None:
            subscriber_id = self.store.insert(
                insert(newsletter_subscribers).values(
                    email=email.lower(),
                    name=name,
                    status="active",
                    source=source,
                    subscribed_at=datetime.now(timezone.utc),
                )
            )
            logger.info("New newsletter subscriber %s from %s", subscriber_id, source)
            return {"subscriber": self._find(email), "created": True}

        if existing["status"] == "active":
            raise ValidationError("Email already subscribed to newsletter")

        self.store.execute(
            update(newsletter_subscribers)
            .where(newsletter_subscribers.c.id == existing["id"])
            .values(status="active", name=name or existing["name"], source=source)
        )
        logger.info("Newsletter subscriber %s resubscribed", existing["id"])
        return {"subscriber": self._find(email), "created": False}

    async def unsubscribe(self, email: str) -> None:
        """Mark an address as unsubscribed.

        Raises:
            NotFoundError: If the address never subscribed.
        """
        existing = self._find(email)
        if existing is None:
            raise NotFoundError("Email not found in newsletter subscribers")

        self.store.execute(
            update(newsletter_subscribers)
            .where(newsletter_subscribers.c.id == existing["id"])
            .values(status="unsubscribed")
        )
        logger.info("Newsletter subscriber %s unsubscribed", existing["id"])

    async def list_subscribers(
        self,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        search: str | None = None,
        sort: str = "newest",
    ) -> dict[str, Any]:
        """List subscribers for the admin console.

        Returns:
            dict: subscribers, page, pages, total.
        """
        conditions = []
        if status:
            conditions.append(newsletter_subscribers.c.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(newsletter_subscribers.c.email).like(pattern),
                    func.lower(func.coalesce(newsletter_subscribers.c.name, "")).like(pattern),
                )
            )

        total = self.store.scalar(
            select(func.count()).select_from(newsletter_subscribers).where(*conditions)
        )
        rows = self.store.fetch_all(
            select(newsletter_subscribers)
            .where(*conditions)
            .order_by(_SORTS.get(sort, _SORTS["newest"]), newsletter_subscribers.c.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        return {
            "subscribers": rows,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
            "total": total,
        }
