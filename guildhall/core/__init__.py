"""Core app configuration, database and security."""

from guildhall.core.config import get_settings, settings
from guildhall.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
