"""Pydantic request/response schemas."""

from guildhall.schemas.auth import (
    AuthResponse,
    AuthUser,
    CurrentUser,
    LoginRequest,
    MeResponse,
    RefreshTokenRequest,
    RegisterRequest,
    WalletAuthRequest,
)
from guildhall.schemas.base import CamelModel, MessageResponse
from guildhall.schemas.health import HealthResponse
from guildhall.schemas.user import (
    AssignRoleRequest,
    AvatarRequest,
    AvatarResponse,
    ChangePasswordRequest,
    PaginatedUsers,
    RoleAssignment,
    UpdatedUserProfile,
    UpdateProfileRequest,
    UserDetails,
    UserProfile,
)

__all__ = [
    "AssignRoleRequest",
    "AuthResponse",
    "AuthUser",
    "AvatarRequest",
    "AvatarResponse",
    "CamelModel",
    "ChangePasswordRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "PaginatedUsers",
    "RefreshTokenRequest",
    "RegisterRequest",
    "RoleAssignment",
    "UpdatedUserProfile",
    "UpdateProfileRequest",
    "UserDetails",
    "UserProfile",
    "WalletAuthRequest",
]
