"""Core module - Configuration, database and errors."""

from proposal_desk.core.config import get_settings, Settings
from proposal_desk.core.database import DatabaseService, db_service

__all__ = [
    "get_settings",
    "Settings",
    "DatabaseService",
    "db_service",
]
