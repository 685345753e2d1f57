"""Newsletter subscription API routes."""

from fastapi import APIRouter, BackgroundTasks, Response, status

from src.api.deps import EmailServiceDep, NewsletterServiceDep
from src.schemas.common import MessageResponse
from src.schemas.newsletter import SubscribeRequest, UnsubscribeRequest

router = APIRouter(prefix="/newsletter", tags=["newsletter"])


@router.post(
    "/subscribe",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Previously unsubscribed address reactivated"}},
    summary="Subscribe to newsletter",
)
async def subscribe(
    data: SubscribeRequest,
    response: Response,
    service: NewsletterServiceDep,
    email_service: EmailServiceDep,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    """Subscribe an email address.

    New subscribers get a welcome email in the background.

    Raises:
        ValidationError: 400 if the address is already subscribed.
    """
    result = await service.subscribe(email=data.email, name=data.name, source=data.source)

    if not result["created"]:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Successfully resubscribed to newsletter")

    background_tasks.add_task(email_service.send_newsletter_welcome, data.email, data.name)
    return MessageResponse(message="Successfully subscribed to newsletter")


@router.post(
    "/unsubscribe",
    response_model=MessageResponse,
    summary="Unsubscribe from newsletter",
)
async def unsubscribe(data: UnsubscribeRequest, service: NewsletterServiceDep) -> MessageResponse:
    """Unsubscribe an email address.

    Raises:
        NotFoundError: 404 if the address never subscribed.
    """
    await service.unsubscribe(data.email)
    return MessageResponse(message="Successfully unsubscribed from newsletter")
