"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.core.database import DataStore, get_data_store
from src.schemas.auth import UserContext
from src.services.address_service import AddressService
from src.services.admin_service import AdminService
from src.services.auth_service import AuthService
from src.services.cart_service import CartService
from src.services.catalog_service import CatalogService
from src.services.email_service import EmailService, get_email_service
from src.services.favorite_service import FavoriteService
from src.services.media_service import MediaService
from src.services.newsletter_service import NewsletterService
from src.services.order_service import OrderService
from src.services.payment_service import PaymentService


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    # Extract the token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")

    try:
        payload = decode_jwt(parts[1])
        return payload.to_user_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise _unauthorized("Token has expired") from e
        raise _unauthorized(e.message) from e

    except ValueError as e:
        # sub claim that is not a user id
        raise _unauthorized("Invalid token subject") from e


async def get_admin_user(
    user: Annotated[UserContext, Depends(get_current_user)],
) -> UserContext:
    """Require an authenticated admin.

    Raises:
        HTTPException: 403 if the caller is not an admin.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as an admin",
        )
    return user


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
AdminUser = Annotated[UserContext, Depends(get_admin_user)]
DataStoreDep = Annotated[DataStore, Depends(get_data_store)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]


# Service providers


def get_order_service(store: DataStoreDep) -> OrderService:
    """Provide an OrderService bound to the request's data store."""
    return OrderService(store)


def get_payment_service(store: DataStoreDep) -> PaymentService:
    """Provide a PaymentService bound to the request's data store."""
    return PaymentService(store)


def get_catalog_service(store: DataStoreDep) -> CatalogService:
    """Provide a CatalogService bound to the request's data store."""
    return CatalogService(store)


def get_cart_service(store: DataStoreDep) -> CartService:
    """Provide a CartService bound to the request's data store."""
    return CartService(store)


def get_favorite_service(store: DataStoreDep) -> FavoriteService:
    """Provide a FavoriteService bound to the request's data store."""
    return FavoriteService(store)


def get_newsletter_service(store: DataStoreDep) -> NewsletterService:
    """Provide a NewsletterService bound to the request's data store."""
    return NewsletterService(store)


def get_admin_service(store: DataStoreDep) -> AdminService:
    """Provide an AdminService bound to the request's data store."""
    return AdminService(store)


def get_auth_service(store: DataStoreDep) -> AuthService:
    """Provide an AuthService bound to the request's data store."""
    return AuthService(store)


def get_address_service(store: DataStoreDep) -> AddressService:
    """Provide an AddressService bound to the request's data store."""
    return AddressService(store)


def get_media_service() -> MediaService:
    """Provide a MediaService backed by the configured storage bucket."""
    return MediaService()


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
CartServiceDep = Annotated[CartService, Depends(get_cart_service)]
FavoriteServiceDep = Annotated[FavoriteService, Depends(get_favorite_service)]
NewsletterServiceDep = Annotated[NewsletterService, Depends(get_newsletter_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
MediaServiceDep = Annotated[MediaService, Depends(get_media_service)]
AddressServiceDep = Annotated[AddressService, Depends(get_address_service)]
