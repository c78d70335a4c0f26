"""Core configuration, database session, security primitives and error taxonomy."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import AccountError

__all__ = ["AccountError", "get_settings", "settings", "get_db"]
