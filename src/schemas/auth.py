"""Authentication schemas for JWT tokens and user context."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

UserRole = Literal["customer", "admin"]


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    This model represents the authenticated user for the current request.
    It is populated by the auth middleware from the validated JWT.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: int = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role ('customer' or 'admin')")

    @property
    def is_admin(self) -> bool:
        """Check if the user holds the admin role."""
        return self.role == "admin"


class TokenPayload(BaseModel):
    """Access token claims issued by this service."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's id")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp)

    def to_user_context(self) -> UserContext:
        """Convert token payload to UserContext.

        Returns:
            UserContext: User context derived from token claims.
        """
        return UserContext(
            user_id=int(self.sub),
            email=self.email,
            role=self.role,
        )


class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Login email address")
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72, description="Account password")
    phone: str | None = Field(default=None, max_length=20, description="Contact phone number")


class LoginRequest(BaseModel):
    """Request schema for password login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., description="Login email address")
    password: str = Field(..., min_length=1, max_length=72, description="Account password")


class UserResponse(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    role: UserRole = Field(description="Account role")
    created_at: datetime | None = Field(default=None, description="Account creation timestamp")


class AuthResponse(BaseModel):
    """Response for register and login: the account plus a bearer token."""

    user: UserResponse = Field(description="Authenticated account")
    token: str = Field(description="Bearer access token")
    token_type: str = Field(default="bearer", description="Token type for the Authorization header")
    expires_in: int = Field(description="Token lifetime in seconds")


class ProfileUpdate(BaseModel):
    """Partial update for the caller's own profile."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = Field(default=None)
    phone: str | None = Field(default=None, max_length=20)
    password: str | None = Field(default=None, min_length=8, max_length=72)
