"""Favorites API routes."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser, FavoriteServiceDep
from src.schemas.favorite import FavoriteAdd, FavoriteCheckResponse, FavoriteResponse

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get(
    "",
    response_model=list[FavoriteResponse],
    summary="List my favorites",
)
async def list_favorites(user: CurrentUser, service: FavoriteServiceDep) -> list[FavoriteResponse]:
    """List the caller's favorited products."""
    return [FavoriteResponse(**row) for row in await service.list_favorites(user.user_id)]


@router.get(
    "/check/{product_id}",
    response_model=FavoriteCheckResponse,
    summary="Check favorite",
    description="Whether the caller has favorited a product.",
)
async def check_favorite(
    product_id: int,
    user: CurrentUser,
    service: FavoriteServiceDep,
) -> FavoriteCheckResponse:
    return FavoriteCheckResponse(
        product_id=product_id,
        is_favorite=await service.is_favorite(user.user_id, product_id),
    )


@router.post(
    "",
    response_model=list[FavoriteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add favorite",
    description="Favoriting the same product twice has no further effect.",
)
async def add_favorite(
    data: FavoriteAdd,
    user: CurrentUser,
    service: FavoriteServiceDep,
) -> list[FavoriteResponse]:
    """Favorite a product."""
    return [FavoriteResponse(**row) for row in await service.add_favorite(user.user_id, data.product_id)]


@router.delete(
    "/{product_id}",
    response_model=list[FavoriteResponse],
    summary="Remove favorite",
)
async def remove_favorite(
    product_id: int,
    user: CurrentUser,
    service: FavoriteServiceDep,
) -> list[FavoriteResponse]:
    """Remove a product from favorites."""
    return [FavoriteResponse(**row) for row in await service.remove_favorite(user.user_id, product_id)]
