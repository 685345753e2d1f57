"""Authentication API routes."""

from fastapi import APIRouter, BackgroundTasks, status

from src.api.deps import AuthServiceDep, EmailServiceDep
from src.schemas.auth import AuthResponse, LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new customer",
    description="Create a customer account and return an access token. A welcome email is sent in the background.",
)
async def register(
    data: RegisterRequest,
    service: AuthServiceDep,
    email_service: EmailServiceDep,
    background_tasks: BackgroundTasks,
) -> AuthResponse:
    """Register a new customer account.

    Args:
        data: Name, email, password and optional phone.
        service: Auth service.
        email_service: Email service for the welcome message.
        background_tasks: Scheduler for post-response work.

    Returns:
        AuthResponse: The new account and its access token.

    Raises:
        ValidationError: 400 if the email is already registered.
    """
    result = await service.register(
        name=data.name,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    background_tasks.add_task(email_service.send_welcome_email, result["user"]["email"], result["user"]["name"])
    return AuthResponse(**result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Exchange email and password for an access token.",
)
async def login(data: LoginRequest, service: AuthServiceDep) -> AuthResponse:
    """Authenticate with email and password.

    Raises:
        AuthenticationError: 401 if the credentials are wrong.
    """
    result = await service.login(email=data.email, password=data.password)
    return AuthResponse(**result)
