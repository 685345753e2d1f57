"""Address book service backed by the user_addresses table."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, insert, select, update

from src.api.middleware.error_handler import NotFoundError
from src.core.database import DataStore, Transaction
from src.core.tables import user_addresses
from src.schemas.address import SavedAddressCreate, SavedAddressUpdate

logger = logging.getLogger(__name__)

# Columns that a partial update may leave NULL
_NULLABLE_FIELDS = {"address_line2"}


class AddressService:
    """Service for a user's saved shipping addresses.

    At most one address per user carries is_default; marking an address as
    default clears the flag on the user's other addresses in the same
    transaction.
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store

    def _owned(self, user_id: int, address_id: int) -> Any:
        return (user_addresses.c.id == address_id) & (user_addresses.c.user_id == user_id)

    def _clear_default(self, tx: Transaction, user_id: int, keep_id: int | None, now: datetime) -> None:
        query = update(user_addresses).where(
            user_addresses.c.user_id == user_id,
            user_addresses.c.is_default.is_(True),
        )
        if keep_id is not None:
            query = query.where(user_addresses.c.id != keep_id)
        tx.execute(query.values(is_default=False, updated_at=now))

    async def list_addresses(self, user_id: int) -> list[dict[str, Any]]:
        """List the user's addresses, default first, then newest."""
        return self.store.fetch_all(
            select(user_addresses)
            .where(user_addresses.c.user_id == user_id)
            .order_by(
                user_addresses.c.is_default.desc(),
                user_addresses.c.created_at.desc(),
                user_addresses.c.id.desc(),
            )
        )

    async def get_address(self, user_id: int, address_id: int) -> dict[str, Any]:
        """Get one of the user's addresses.

        Raises:
            NotFoundError: If the address does not exist or belongs to someone else.
        """
        address = self.store.fetch_one(select(user_addresses).where(self._owned(user_id, address_id)))
        if address is None:
            raise NotFoundError("Address not found")
        return address

    async def add_address(self, user_id: int, data: SavedAddressCreate) -> dict[str, Any]:
        """Save a new address for the user."""
        now = datetime.now(timezone.utc)

        with self.store.transaction() as tx:
            if data.is_default:
                self._clear_default(tx, user_id, None, now)
            address_id = tx.insert(
                insert(user_addresses).values(
                    user_id=user_id,
                    created_at=now,
                    updated_at=now,
                    **data.model_dump(),
                )
            )

        logger.info("Saved address %s for user %s", address_id, user_id)
        return await self.get_address(user_id, address_id)

    async def update_address(
        self, user_id: int, address_id: int, data: SavedAddressUpdate
    ) -> dict[str, Any]:
        """Update the supplied fields of a saved address.

        Raises:
            NotFoundError: If the address does not exist or belongs to someone else.
        """
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_FIELDS
        }
        now = datetime.now(timezone.utc)

        with self.store.transaction() as tx:
            affected = tx.execute(
                update(user_addresses)
                .where(self._owned(user_id, address_id))
                .values(updated_at=now, **changes)
            )
            if not affected:
                raise NotFoundError("Address not found")
            if changes.get("is_default"):
                self._clear_default(tx, user_id, address_id, now)

        return await self.get_address(user_id, address_id)

    async def delete_address(self, user_id: int, address_id: int) -> None:
        """Delete a saved address.

        Raises:
            NotFoundError: If the address does not exist or belongs to someone else.
        """
        affected = self.store.execute(delete(user_addresses).where(self._owned(user_id, address_id)))
        if not affected:
            raise NotFoundError("Address not found")
        logger.info("Deleted address %s for user %s", address_id, user_id)
