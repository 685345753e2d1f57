"""Product catalog API routes."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from src.api.deps import AdminUser, CatalogServiceDep
from src.schemas.product import ProductCreate, ProductListResponse, ProductResponse, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="Search, filter, sort and paginate the catalog.",
)
async def list_products(
    service: CatalogServiceDep,
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int = Query(default=10, ge=1, le=100, description="Items per page"),
    search: str | None = Query(default=None, max_length=100, description="Match name or description"),
    category: str | None = Query(default=None, description="Category id or name"),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    sort: str = Query(default="created_at,desc", description="field,direction"),
) -> ProductListResponse:
    """List products with pagination.

    Args:
        service: Catalog service.
        page: Page number.
        limit: Items per page.
        search: Case-insensitive search text.
        category: Category filter.
        min_price: Lower price bound.
        max_price: Upper price bound.
        sort: Sort field and direction, e.g. price,asc.

    Returns:
        ProductListResponse: One page of products.
    """
    result = await service.list_products(
        page=page,
        limit=limit,
        search=search,
        category=category,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
    )
    return ProductListResponse(**result)


CollectionLimit = Annotated[int, Query(ge=1, le=50, description="Maximum number of products")]


@router.get(
    "/featured",
    response_model=list[ProductResponse],
    summary="Featured products",
    description="Newest products flagged as featured.",
)
async def list_featured(service: CatalogServiceDep, limit: CollectionLimit = 8) -> list[ProductResponse]:
    """List featured products."""
    return [ProductResponse(**p) for p in await service.list_collection("featured", limit)]


@router.get(
    "/new",
    response_model=list[ProductResponse],
    summary="New arrivals",
    description="Newest products flagged as new arrivals.",
)
async def list_new_arrivals(service: CatalogServiceDep, limit: CollectionLimit = 8) -> list[ProductResponse]:
    """List new arrivals."""
    return [ProductResponse(**p) for p in await service.list_collection("new", limit)]


@router.get(
    "/budget",
    response_model=list[ProductResponse],
    summary="Budget products",
)
async def list_budget(service: CatalogServiceDep, limit: CollectionLimit = 8) -> list[ProductResponse]:
    return [ProductResponse(**p) for p in await service.list_collection("budget", limit)]


@router.get(
    "/luxury",
    response_model=list[ProductResponse],
    summary="Luxury products",
)
async def list_luxury(service: CatalogServiceDep, limit: CollectionLimit = 8) -> list[ProductResponse]:
    return [ProductResponse(**p) for p in await service.list_collection("luxury", limit)]


@router.get(
    "/related/{product_id}",
    response_model=list[ProductResponse],
    summary="Related products",
    description="Other products from the same category.",
)
async def list_related(
    product_id: int,
    service: CatalogServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 4,
) -> list[ProductResponse]:
    """List products related to one product.

    Raises:
        NotFoundError: 404 if the product does not exist.
    """
    return [ProductResponse(**p) for p in await service.get_related_products(product_id, limit)]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product",
    description="Returns a single product.",
)
async def get_product(product_id: int, service: CatalogServiceDep) -> ProductResponse:
    """Get a product by ID.

    Raises:
        NotFoundError: 404 if the product does not exist.
    """
    return ProductResponse(**await service.get_product(product_id))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Admin only.",
)
async def create_product(
    data: ProductCreate,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Create a product."""
    return ProductResponse(**await service.create_product(data))


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update product",
    description="Admin only. Only supplied fields change.",
)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Update a product. Existing order lines keep their purchase price."""
    return ProductResponse(**await service.update_product(product_id, data))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete product",
    description="Admin only. Products that appear on orders cannot be deleted.",
)
async def delete_product(
    product_id: int,
    _admin: AdminUser,
    service: CatalogServiceDep,
) -> Response:
    """Delete a product."""
    await service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
