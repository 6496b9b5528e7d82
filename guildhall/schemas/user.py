"""Request/response schemas for profile and account endpoints."""

from datetime import datetime

from pydantic import Field

from guildhall.models.user import UserRole
from guildhall.schemas.base import CamelModel


class UserProfile(CamelModel):
    """Public profile; safe to show to anyone."""

    id: str
    username: str
    first_name: str
    last_name: str
    bio: str | None = None
    avatar_url: str | None = None
    profile_bio: str | None = None
    profile_url: str | None = None
    discord_handle: str | None = None
    twitter_handle: str | None = None
    created_at: datetime
    role: UserRole


class UpdatedUserProfile(UserProfile):
    updated_at: datetime


class UserDetails(UserProfile):
    """Profile plus sensitive fields; only for the user themself or an admin."""

    email: str
    wallet_address: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    updated_at: datetime


class UpdateProfileRequest(CamelModel):
    """Partial update: only fields present in the body are applied."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    profile_bio: str | None = Field(default=None, max_length=500)
    profile_url: str | None = Field(default=None, max_length=2048)
    discord_handle: str | None = Field(default=None, max_length=100)
    twitter_handle: str | None = Field(default=None, max_length=100)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=8, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=8, max_length=128)


class AvatarRequest(CamelModel):
    avatar_url: str | None = Field(default=None, max_length=2048)


class AvatarResponse(CamelModel):
    avatar_url: str
    message: str


class AssignRoleRequest(CamelModel):
    role: UserRole


class RoleAssignment(CamelModel):
    """User identity and newly assigned role."""

    id: str
    username: str
    email: str
    role: UserRole


class PaginatedUsers(CamelModel):
    """One page of users plus the total number matching the filters."""

    data: list[UserProfile]
    total: int
    skip: int
    take: int
