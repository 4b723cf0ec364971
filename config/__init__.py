"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings
    get_supabase_client: Cached Supabase client
    configure_logging: structlog setup
"""

from config.settings import settings, get_settings, Settings
from config.database import get_supabase_client
from config.logging import configure_logging

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_supabase_client",

    # Logging
    "configure_logging",
]
