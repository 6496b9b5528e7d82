"""User endpoints: self-service profile management, lookup and admin operations."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from guildhall.api.v1.auth import get_current_user, require_roles
from guildhall.core.database import get_db
from guildhall.models import UserRole
from guildhall.schemas.auth import CurrentUser
from guildhall.schemas.base import MessageResponse
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
from guildhall.services import users as user_service
from guildhall.services.users import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()

# Role allow-lists for the privileged operations below.
STAFF_ROLES = (UserRole.ADMIN, UserRole.MODERATOR)
ADMIN_ROLES = (UserRole.ADMIN,)

require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(*ADMIN_ROLES)

Skip = Annotated[int, Query(ge=0, description="Number of users to skip")]
Take = Annotated[
    int, Query(ge=1, le=MAX_PAGE_SIZE, description="Page size (max 100)")
]


@router.get("/me", response_model=UserProfile)
def get_my_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    return user_service.get_user_profile(db, current_user.id)


@router.patch("/me", response_model=UpdatedUserProfile)
def update_my_profile(
    body: UpdateProfileRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UpdatedUserProfile:
    """Partial update; omitted fields are left unchanged."""
    return user_service.update_user_profile(db, current_user.id, body)


@router.post("/me/change-password", response_model=MessageResponse)
def change_my_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    return user_service.change_password(db, current_user.id, body)


@router.post("/me/avatar", response_model=AvatarResponse)
def update_my_avatar(
    body: AvatarRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AvatarResponse:
    """Replace the avatar URL. Image hosting is external; only the URL is stored."""
    return user_service.update_avatar(db, current_user.id, body.avatar_url)


@router.delete("/me", response_model=MessageResponse)
def deactivate_my_account(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Soft-deactivate the caller's account; nothing is erased."""
    return user_service.deactivate_user(db, current_user.id)


@router.get("/search", response_model=PaginatedUsers)
def search_users(
    _staff: Annotated[CurrentUser, Depends(require_staff)],
    db: Annotated[Session, Depends(get_db)],
    query: Annotated[str | None, Query(max_length=100)] = None,
    role: UserRole | None = None,
    is_active: Annotated[bool | None, Query(alias="isActive")] = None,
    skip: Skip = 0,
    take: Take = DEFAULT_PAGE_SIZE,
) -> PaginatedUsers:
    """Search by username, email or name; filter by role and active flag (admin/moderator)."""
    return user_service.search_users(
        db, query=query, role=role, is_active=is_active, skip=skip, take=take
    )


@router.get("/role/{role}", response_model=PaginatedUsers)
def get_users_by_role(
    role: UserRole,
    _staff: Annotated[CurrentUser, Depends(require_staff)],
    db: Annotated[Session, Depends(get_db)],
    skip: Skip = 0,
    take: Take = DEFAULT_PAGE_SIZE,
) -> PaginatedUsers:
    return user_service.get_users_by_role(db, role, skip=skip, take=take)


@router.get("/details/{user_id}", response_model=UserDetails)
def get_user_details(
    user_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserDetails:
    """Email, wallet and account status; only for the user themself or an admin."""
    return user_service.get_user_details(db, user_id, current_user)


@router.get("/{user_id}", response_model=UserProfile)
def get_user_profile(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    """Public profile of any user."""
    return user_service.get_user_profile(db, user_id)


@router.patch("/{user_id}/role", response_model=RoleAssignment)
def assign_role(
    user_id: str,
    body: AssignRoleRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleAssignment:
    return user_service.assign_role(db, user_id, body.role)


@router.post("/{user_id}/reactivate", response_model=MessageResponse)
def reactivate_user(
    user_id: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    return user_service.reactivate_user(db, user_id)
