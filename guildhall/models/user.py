"""ORM model for platform users (credentials, profile, role and session state)."""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, func

from guildhall.models.base import Base


class UserRole(str, enum.Enum):
    """Closed set of roles; only an ADMIN may change a user's role."""

    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for password or wallet authentication and role-based access control.

    password_hash is always set; wallet-provisioned accounts get the hash of a random
    secret. refresh_token holds the single live refresh token (NULL after logout).
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    wallet_address = Column(String(42), nullable=True, unique=True, index=True)

    first_name = Column(String(100), nullable=False, default="", server_default="")
    last_name = Column(String(100), nullable=False, default="", server_default="")
    bio = Column(String(500), nullable=True)
    profile_bio = Column(String(500), nullable=True)
    profile_url = Column(String(2048), nullable=True)
    avatar_url = Column(String(2048), nullable=True)
    discord_handle = Column(String(100), nullable=True)
    twitter_handle = Column(String(100), nullable=True)

    role = Column(String(32), nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)


# Case-insensitive uniqueness of wallet addresses.
Index("ix_users_wallet_address_lower", func.lower(User.wallet_address), unique=True)
