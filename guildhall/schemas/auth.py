"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from guildhall.models.user import UserRole
from guildhall.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    """Email/password registration with an optional wallet to bind."""

    email: EmailStr = Field(..., max_length=255)
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    wallet_address: str | None = Field(
        default=None, description="0x-prefixed 40 hex character Ethereum address"
    )


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class WalletAuthRequest(CamelModel):
    """A message signed by the wallet (EIP-191 personal_sign) proving key ownership."""

    wallet_address: str
    message: str = Field(..., min_length=1, max_length=4096)
    signature: str = Field(..., min_length=1, max_length=512)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class AuthUser(CamelModel):
    """Public subset of the user returned alongside a token pair."""

    id: str
    email: str
    username: str
    wallet_address: str | None = None


class AuthResponse(CamelModel):
    """Access + refresh token pair returned by register, login, wallet-auth and refresh."""

    access_token: str = Field(..., description="Short-lived JWT for the Authorization header")
    refresh_token: str = Field(..., description="Long-lived JWT accepted by /auth/refresh")
    user: AuthUser


class MeResponse(CamelModel):
    """Restricted projection of the authenticated user's record."""

    id: str
    email: str
    username: str
    first_name: str
    last_name: str
    wallet_address: str | None = None
    role: UserRole
    is_active: bool
    created_at: datetime


class CurrentUser(BaseModel):
    """Authenticated identity taken from access token claims, for dependency injection."""

    id: str
    email: str
    role: UserRole
    wallet_address: str | None = None
