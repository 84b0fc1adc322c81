"""Configuration module for application settings."""

from .settings import settings
from .database import get_db, init_db
from .storage import get_storage_client, get_bucket_name

__all__ = [
    "settings",
    "get_db",
    "init_db",
    "get_storage_client",
    "get_bucket_name",
]
