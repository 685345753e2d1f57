"""Authentication and account business logic service."""

import logging
from datetime import datetime, timezone
from typing import Any

import bcrypt
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError

from src.api.middleware.auth import create_access_token
from src.api.middleware.error_handler import AuthenticationError, NotFoundError, ValidationError
from src.core.database import DataStore
from src.core.tables import users
from src.schemas.auth import ProfileUpdate

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = [
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.phone,
    users.c.role,
    users.c.created_at,
]


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class AuthService:
    """Service for managing user accounts and issuing tokens."""

    def __init__(self, store: DataStore) -> None:
        """Initialize auth service.

        Args:
            store: Relational data store gateway.
        """
        self.store = store

    def _issue(self, user: dict[str, Any]) -> dict[str, Any]:
        token, expires_in = create_access_token(user["id"], user["email"], user["role"])
        return {"user": user, "token": token, "expires_in": expires_in}

    def _email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        query = select(users.c.id).where(func.lower(users.c.email) == email.lower())
        if exclude_user_id is not None:
            query = query.where(users.c.id != exclude_user_id)
        return self.store.scalar(query) is not None

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: str | None = None,
    ) -> dict[str, Any]:
        """Create a customer account and sign it in.

        Args:
            name: Display name.
            email: Login email address.
            password: Plain-text password; only its bcrypt hash is stored.
            phone: Optional phone number.

        Returns:
            dict: user, token and expires_in.

        Raises:
            ValidationError: If the email is already registered.
        """
        if self._email_taken(email):
            raise ValidationError("User already exists")

        now = datetime.now(timezone.utc)
        try:
            user_id = self.store.insert(
                insert(users).values(
                    name=name,
                    email=email.lower(),
                    password_hash=hash_password(password),
                    phone=phone,
                    role="customer",
                    created_at=now,
                    updated_at=now,
                )
            )
        except IntegrityError as e:
            # lost a race with a concurrent registration
            raise ValidationError("User already exists") from e

        logger.info("User registered: %s", user_id)
        return self._issue(await self.get_profile(user_id))

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate with email and password.

        Returns:
            dict: user, token and expires_in.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong.
        """
        row = self.store.fetch_one(
            select(*_PUBLIC_COLUMNS, users.c.password_hash).where(
                func.lower(users.c.email) == email.lower()
            )
        )
        if row is None or not verify_password(password, row.pop("password_hash")):
            logger.warning("Failed login attempt for %s", email)
            raise AuthenticationError("Invalid email or password")

        logger.info("User logged in: %s", row["id"])
        return self._issue(row)

    async def get_profile(self, user_id: int) -> dict[str, Any]:
        """Get a user's public profile.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = self.store.fetch_one(select(*_PUBLIC_COLUMNS).where(users.c.id == user_id))
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: int, data: ProfileUpdate) -> dict[str, Any]:
        """Update the supplied profile fields.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If the new email belongs to another account.
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in changes:
            if self._email_taken(changes["email"], exclude_user_id=user_id):
                raise ValidationError("Email already in use")
            changes["email"] = changes["email"].lower()

        if "password" in changes:
            changes["password_hash"] = hash_password(changes.pop("password"))

        affected = self.store.execute(
            update(users)
            .where(users.c.id == user_id)
            .values(updated_at=datetime.now(timezone.utc), **changes)
        )
        if not affected:
            raise NotFoundError("User not found")

        logger.info("Profile updated for user %s", user_id)
        return await self.get_profile(user_id)
