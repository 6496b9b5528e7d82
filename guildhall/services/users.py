"""Profile and account operations: self-service updates and admin role/status management."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from guildhall.core.exceptions import BadInputError, ForbiddenError, NotFoundError
from guildhall.core.security import hash_password, verify_password
from guildhall.models import User, UserRole
from guildhall.schemas.auth import CurrentUser
from guildhall.schemas.base import MessageResponse
from guildhall.schemas.user import (
    AvatarResponse,
    ChangePasswordRequest,
    PaginatedUsers,
    RoleAssignment,
    UpdatedUserProfile,
    UpdateProfileRequest,
    UserDetails,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Columns searched by the free-text query.
SEARCH_COLUMNS = (User.username, User.email, User.first_name, User.last_name)

# Required columns; an explicit null in a partial update leaves them unchanged.
NON_NULLABLE_PROFILE_FIELDS = frozenset({"first_name", "last_name"})


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_profile(db: Session, user_id: str) -> UserProfile:
    """Public profile of any user."""
    return UserProfile.model_validate(get_user_or_404(db, user_id))


def get_user_details(db: Session, user_id: str, requester: CurrentUser) -> UserDetails:
    """Sensitive view (email, wallet, status); only the user themself or an admin may see it."""
    if user_id != requester.id and requester.role != UserRole.ADMIN:
        raise ForbiddenError("You do not have permission to view this user details")
    return UserDetails.model_validate(get_user_or_404(db, user_id))


def update_user_profile(
    db: Session, user_id: str, body: UpdateProfileRequest
) -> UpdatedUserProfile:
    """Apply only the fields present in the request body."""
    user = get_user_or_404(db, user_id)
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in NON_NULLABLE_PROFILE_FIELDS:
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info(
        "Profile updated",
        extra={"user_id": user_id, "fields": sorted(changes)},
    )
    return UpdatedUserProfile.model_validate(user)


def change_password(
    db: Session, user_id: str, body: ChangePasswordRequest
) -> MessageResponse:
    """
    Replace the password after verifying the current one.

    Raises BadInputError (leaving the stored hash untouched) when the confirmation
    differs, the new password equals the current one, or the current one is wrong.
    """
    if body.new_password != body.confirm_password:
        raise BadInputError("Passwords do not match")
    if body.new_password == body.current_password:
        raise BadInputError("New password must be different from current password")

    user = get_user_or_404(db, user_id)
    if not verify_password(body.current_password, user.password_hash):
        raise BadInputError("Current password is incorrect")

    user.password_hash = hash_password(body.new_password)
    db.commit()
    logger.info("Password changed", extra={"user_id": user_id})
    return MessageResponse(message="Password changed successfully")


def update_avatar(db: Session, user_id: str, avatar_url: str | None) -> AvatarResponse:
    if not avatar_url or not avatar_url.strip():
        raise BadInputError("avatarUrl is required")
    user = get_user_or_404(db, user_id)
    user.avatar_url = avatar_url.strip()
    db.commit()
    return AvatarResponse(avatar_url=user.avatar_url, message="Avatar updated successfully")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _paginate(query: Query, skip: int, take: int) -> PaginatedUsers:
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id)
        .offset(skip)
        .limit(take)
        .all()
    )
    return PaginatedUsers(
        data=[UserProfile.model_validate(u) for u in users],
        total=total,
        skip=skip,
        take=take,
    )


def search_users(
    db: Session,
    query: str | None = None,
    role: UserRole | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    take: int = DEFAULT_PAGE_SIZE,
) -> PaginatedUsers:
    """
    Case-insensitive substring search over username, email and names, optionally
    filtered by role and active flag. Newest users first.
    """
    q = db.query(User)
    if query and query.strip():
        pattern = f"%{_escape_like(query.strip())}%"
        q = q.filter(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))
    if role is not None:
        q = q.filter(User.role == role.value)
    if is_active is not None:
        q = q.filter(User.is_active.is_(is_active))
    return _paginate(q, skip, take)


def get_users_by_role(
    db: Session, role: UserRole, skip: int = 0, take: int = DEFAULT_PAGE_SIZE
) -> PaginatedUsers:
    return _paginate(db.query(User).filter(User.role == role.value), skip, take)


def assign_role(db: Session, user_id: str, role: UserRole) -> RoleAssignment:
    """Set a user's role. The new role reaches their tokens on next sign-in or refresh."""
    user = get_user_or_404(db, user_id)
    previous = user.role
    user.role = role.value
    db.commit()
    logger.info(
        "Role assigned",
        extra={"user_id": user_id, "previous_role": previous, "role": role.value},
    )
    return RoleAssignment.model_validate(user)


def deactivate_user(db: Session, user_id: str) -> MessageResponse:
    """Soft-deactivate; the record stays and the current session cannot be refreshed."""
    user = get_user_or_404(db, user_id)
    user.is_active = False
    user.refresh_token = None
    db.commit()
    logger.info("User deactivated", extra={"user_id": user_id})
    return MessageResponse(message="User account deactivated successfully")


def reactivate_user(db: Session, user_id: str) -> MessageResponse:
    user = get_user_or_404(db, user_id)
    user.is_active = True
    db.commit()
    logger.info("User reactivated", extra={"user_id": user_id})
    return MessageResponse(message="User account reactivated successfully")
