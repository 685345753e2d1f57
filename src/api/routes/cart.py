"""Shopping cart API routes."""

from fastapi import APIRouter, status

from src.api.deps import CartServiceDep, CurrentUser
from src.schemas.cart import CartItemAdd, CartItemUpdate, CartResponse
from src.schemas.common import MessageResponse

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get(
    "",
    response_model=CartResponse,
    summary="Get my cart",
)
async def get_cart(user: CurrentUser, service: CartServiceDep) -> CartResponse:
    """Get the caller's cart with current prices."""
    return CartResponse(**await service.get_cart(user.user_id))


@router.post(
    "",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add to cart",
    description="Adds a product, merging with an existing line. The combined quantity may not exceed stock.",
)
async def add_to_cart(data: CartItemAdd, user: CurrentUser, service: CartServiceDep) -> CartResponse:
    """Add a product to the cart.

    Raises:
        NotFoundError: 404 if the product does not exist.
        InsufficientStockError: 400 if stock cannot cover the quantity.
    """
    return CartResponse(**await service.add_to_cart(user.user_id, data.product_id, data.quantity))


@router.put(
    "/{item_id}",
    response_model=CartResponse,
    summary="Update cart line",
)
async def update_cart_item(
    item_id: int,
    data: CartItemUpdate,
    user: CurrentUser,
    service: CartServiceDep,
) -> CartResponse:
    """Set the quantity of a cart line."""
    return CartResponse(**await service.update_cart_item(user.user_id, item_id, data.quantity))


@router.delete(
    "/{item_id}",
    response_model=CartResponse,
    summary="Remove cart line",
)
async def remove_from_cart(item_id: int, user: CurrentUser, service: CartServiceDep) -> CartResponse:
    """Remove one line from the cart."""
    return CartResponse(**await service.remove_from_cart(user.user_id, item_id))


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Clear cart",
)
async def clear_cart(user: CurrentUser, service: CartServiceDep) -> MessageResponse:
    """Empty the caller's cart."""
    await service.clear_cart(user.user_id)
    return MessageResponse(message="Cart cleared")
