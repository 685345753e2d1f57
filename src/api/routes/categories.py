"""Category API routes."""

from fastapi import APIRouter, Query, Response, status

from src.api.deps import AdminUser, CatalogServiceDep
from src.schemas.category import (
    CategoryCreate,
    CategoryProductsResponse,
    CategoryResponse,
    CategoryUpdate,
)

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get(
    "",
    response_model=list[CategoryResponse],
    summary="List categories",
)
async def list_categories(service: CatalogServiceDep) -> list[CategoryResponse]:
    """List every category with its product count."""
    return [CategoryResponse(**row) for row in await service.list_categories()]


@router.get(
    "/{category_key}",
    response_model=CategoryResponse,
    summary="Get category",
    description="Look a category up by numeric id or slug.",
)
async def get_category(category_key: str, service: CatalogServiceDep) -> CategoryResponse:
    """Get a category.

    Raises:
        NotFoundError: 404 if nothing matches.
    """
    return CategoryResponse(**await service.get_category(category_key))


@router.get(
    "/{category_key}/products",
    response_model=CategoryProductsResponse,
    summary="List category products",
)
async def get_category_products(
    category_key: str,
    service: CatalogServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> CategoryProductsResponse:
    """List the products in a category."""
    return CategoryProductsResponse(**await service.get_category_products(category_key, page, limit))


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    description="Admin only. The slug defaults to the hyphenated name.",
)
async def create_category(
    data: CategoryCreate,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> CategoryResponse:
    """Create a category."""
    return CategoryResponse(**await service.create_category(data))


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update category",
    description="Admin only.",
)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> CategoryResponse:
    """Update a category."""
    return CategoryResponse(**await service.update_category(category_id, data))


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete category",
    description="Admin only. Categories that still hold products cannot be deleted.",
)
async def delete_category(
    category_id: int,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> Response:
    """Delete a category."""
    await service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
