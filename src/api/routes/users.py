"""User profile and address book API routes."""

from fastapi import APIRouter, Response, status

from src.api.deps import AddressServiceDep, AuthServiceDep, CurrentUser
from src.schemas.address import SavedAddressCreate, SavedAddressResponse, SavedAddressUpdate
from src.schemas.auth import ProfileUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get my profile",
    description="Returns the authenticated user's account details.",
)
async def get_profile(user: CurrentUser, service: AuthServiceDep) -> UserResponse:
    """Get the caller's profile."""
    profile = await service.get_profile(user.user_id)
    return UserResponse(**profile)


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update my profile",
    description="Update name, email, phone or password. Only supplied fields change.",
)
async def update_profile(
    data: ProfileUpdate,
    user: CurrentUser,
    service: AuthServiceDep,
) -> UserResponse:
    """Update the caller's profile.

    Raises:
        ValidationError: 400 if the new email is already in use.
    """
    profile = await service.update_profile(user.user_id, data)
    return UserResponse(**profile)


@router.get(
    "/addresses",
    response_model=list[SavedAddressResponse],
    summary="List my addresses",
    description="Saved addresses, default first.",
)
async def list_addresses(user: CurrentUser, service: AddressServiceDep) -> list[SavedAddressResponse]:
    """List the caller's saved addresses."""
    return [SavedAddressResponse(**row) for row in await service.list_addresses(user.user_id)]


@router.post(
    "/addresses",
    response_model=SavedAddressResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add address",
    description="Saving an address with is_default clears the flag on the others.",
)
async def add_address(
    data: SavedAddressCreate,
    user: CurrentUser,
    service: AddressServiceDep,
) -> SavedAddressResponse:
    """Save a new address."""
    return SavedAddressResponse(**await service.add_address(user.user_id, data))


@router.put(
    "/addresses/{address_id}",
    response_model=SavedAddressResponse,
    summary="Update address",
    description="Only supplied fields change.",
)
async def update_address(
    address_id: int,
    data: SavedAddressUpdate,
    user: CurrentUser,
    service: AddressServiceDep,
) -> SavedAddressResponse:
    """Update one of the caller's addresses.

    Raises:
        NotFoundError: 404 if the address is not the caller's.
    """
    return SavedAddressResponse(**await service.update_address(user.user_id, address_id, data))


@router.delete(
    "/addresses/{address_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete address",
)
async def delete_address(address_id: int, user: CurrentUser, service: AddressServiceDep) -> Response:
    """Delete one of the caller's addresses."""
    await service.delete_address(user.user_id, address_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
