"""SQLAlchemy ORM models."""

from guildhall.models.base import Base
from guildhall.models.user import User, UserRole

__all__ = ["Base", "User", "UserRole"]
