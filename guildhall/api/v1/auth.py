"""Auth endpoints and auth dependencies (get_current_user, require_roles)."""

from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from guildhall.core.database import get_db
from guildhall.core.exceptions import ForbiddenError
from guildhall.core.security import decode_access_token
from guildhall.models import UserRole
from guildhall.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MeResponse,
    RefreshTokenRequest,
    RegisterRequest,
    WalletAuthRequest,
)
from guildhall.schemas.base import MessageResponse
from guildhall.services import auth as auth_service

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return the identity in its claims.
    Stateless; no database access. Raises 401 if missing or invalid.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    try:
        return CurrentUser(
            id=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", UserRole.USER.value),
            wallet_address=payload.get("walletAddress"),
        )
    except (KeyError, ValidationError):
        raise _unauthorized("Invalid token payload")


def require_roles(*roles: UserRole) -> Callable[[CurrentUser], CurrentUser]:
    """
    Build a dependency that admits only callers whose role is in the allow-list.
    Raises 403 for any other authenticated caller.
    """
    allowed = frozenset(roles)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return dependency


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """Register with email and password (optionally binding a wallet); returns a token pair."""
    return auth_service.register(db, body)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return auth_service.login(db, body)


@router.post("/wallet-auth", response_model=AuthResponse)
def wallet_auth(
    body: WalletAuthRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """Authenticate with a personal_sign signature; first-time wallets get an account."""
    return auth_service.wallet_auth(db, body)


@router.post("/refresh", response_model=AuthResponse)
def refresh(
    body: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """Rotate the refresh token; the presented one stops working."""
    return auth_service.refresh_tokens(db, body)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    return auth_service.logout(db, current_user.id)


@router.get("/me", response_model=MeResponse)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse:
    """Return the authenticated user's own record."""
    return auth_service.get_current_user_profile(db, current_user.id)
