"""Order API routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, status

from src.api.deps import AdminUser, CurrentUser, EmailServiceDep, OrderServiceDep
from src.schemas.order import OrderCreate, OrderListResponse, OrderResponse, OrderStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description=(
        "Creates the order, reserves stock and empties the cart in one transaction. "
        "Prices are taken from the catalog, never from the request."
    ),
)
async def create_order(
    data: OrderCreate,
    user: CurrentUser,
    service: OrderServiceDep,
    email_service: EmailServiceDep,
    background_tasks: BackgroundTasks,
) -> OrderResponse:
    """Place an order for the authenticated user.

    Args:
        data: Items, shipping address and payment method.
        user: Authenticated caller.
        service: Order service.
        email_service: Email service for the confirmation.
        background_tasks: Scheduler for post-response work.

    Returns:
        OrderResponse: The created order.

    Raises:
        ValidationError: 400 if there are no items.
        NotFoundError: 404 if a product does not exist.
        InsufficientStockError: 400 if stock cannot cover a line.
    """
    order = await service.create_order(
        user_id=user.user_id,
        items=data.items,
        shipping_address=data.shipping_address,
        payment_method=data.payment_method,
    )

    recipient = order.get("customer_email") or user.email
    if recipient:
        background_tasks.add_task(email_service.send_order_confirmation, recipient, order)

    return OrderResponse(**order)


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List my orders",
    description="Returns all orders for the authenticated user, newest first.",
)
async def list_orders(user: CurrentUser, service: OrderServiceDep) -> OrderListResponse:
    """List the caller's orders."""
    orders = await service.list_user_orders(user.user_id)
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
    description="Owners and admins may read an order.",
)
async def get_order(order_id: int, user: CurrentUser, service: OrderServiceDep) -> OrderResponse:
    """Get a specific order.

    Raises:
        NotFoundError: 404 if the order does not exist.
        AuthorizationError: 403 if the caller neither owns it nor is an admin.
    """
    return OrderResponse(**await service.get_order(order_id, user))


@router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status",
    description="Admin only. Moving an order to shipped notifies the customer by email.",
)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    admin: AdminUser,
    service: OrderServiceDep,
    email_service: EmailServiceDep,
    background_tasks: BackgroundTasks,
) -> OrderResponse:
    """Set an order's fulfillment status.

    Raises:
        NotFoundError: 404 if the order does not exist.
    """
    order = await service.update_order_status(order_id, data.status)
    logger.info("Admin %s set order %s to %s", admin.user_id, order_id, data.status)

    if data.status == "shipped" and order.get("customer_email"):
        background_tasks.add_task(email_service.send_shipping_notification, order["customer_email"], order)

    return OrderResponse(**order)
