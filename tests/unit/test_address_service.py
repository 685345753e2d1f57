"""Unit tests for AddressService."""

from typing import Any

import pytest

from src.api.middleware.error_handler import NotFoundError
from src.schemas.address import SavedAddressCreate, SavedAddressUpdate
from src.services.address_service import AddressService


@pytest.fixture
def addresses(store: Any) -> AddressService:
    """Create AddressService bound to the test database."""
    return AddressService(store)


@pytest.fixture
def home(shipping_address: dict[str, str]) -> SavedAddressCreate:
    return SavedAddressCreate(**shipping_address)


def defaults_of(rows: list[dict[str, Any]]) -> list[int]:
    return [row["id"] for row in rows if row["is_default"]]


class TestAddressBook:
    """Tests for the saved address book."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, addresses: AddressService, make_user: Any, home: SavedAddressCreate) -> None:
        user_id = make_user()

        saved = await addresses.add_address(user_id, home)
        listed = await addresses.list_addresses(user_id)

        assert saved["city"] == "Springfield"
        assert saved["is_default"] is False
        assert saved["address_line2"] is None
        assert [row["id"] for row in listed] == [saved["id"]]

    @pytest.mark.asyncio
    async def test_new_default_clears_previous(
        self, addresses: AddressService, make_user: Any, home: SavedAddressCreate
    ) -> None:
        """Only one address per user is the default."""
        user_id = make_user()
        first = await addresses.add_address(user_id, home.model_copy(update={"is_default": True}))
        second = await addresses.add_address(user_id, home.model_copy(update={"is_default": True, "city": "Shelbyville"}))

        listed = await addresses.list_addresses(user_id)

        assert defaults_of(listed) == [second["id"]]
        assert listed[0]["id"] == second["id"]
        assert (await addresses.get_address(user_id, first["id"]))["is_default"] is False

    @pytest.mark.asyncio
    async def test_update_to_default_clears_others(
        self, addresses: AddressService, make_user: Any, home: SavedAddressCreate
    ) -> None:
        user_id = make_user()
        await addresses.add_address(user_id, home.model_copy(update={"is_default": True}))
        second = await addresses.add_address(user_id, home)

        updated = await addresses.update_address(
            user_id, second["id"], SavedAddressUpdate(is_default=True, address_line2="Apt 4")
        )

        assert updated["is_default"] is True
        assert updated["address_line2"] == "Apt 4"
        assert updated["city"] == "Springfield"
        assert defaults_of(await addresses.list_addresses(user_id)) == [second["id"]]

    @pytest.mark.asyncio
    async def test_defaults_are_per_user(
        self, addresses: AddressService, make_user: Any, home: SavedAddressCreate
    ) -> None:
        owner = make_user()
        other = make_user()
        kept = await addresses.add_address(other, home.model_copy(update={"is_default": True}))

        await addresses.add_address(owner, home.model_copy(update={"is_default": True}))

        assert defaults_of(await addresses.list_addresses(other)) == [kept["id"]]

    @pytest.mark.asyncio
    async def test_other_users_address_is_not_found(
        self, addresses: AddressService, make_user: Any, home: SavedAddressCreate
    ) -> None:
        owner = make_user()
        other = make_user()
        address_id = (await addresses.add_address(owner, home))["id"]

        with pytest.raises(NotFoundError):
            await addresses.update_address(other, address_id, SavedAddressUpdate(city="Elsewhere"))
        with pytest.raises(NotFoundError):
            await addresses.delete_address(other, address_id)

        assert (await addresses.get_address(owner, address_id))["city"] == "Springfield"

    @pytest.mark.asyncio
    async def test_delete(self, addresses: AddressService, make_user: Any, home: SavedAddressCreate) -> None:
        user_id = make_user()
        address_id = (await addresses.add_address(user_id, home))["id"]

        await addresses.delete_address(user_id, address_id)

        assert await addresses.list_addresses(user_id) == []
        with pytest.raises(NotFoundError):
            await addresses.delete_address(user_id, address_id)
