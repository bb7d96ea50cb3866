"""Database configuration."""

from ..core.config import settings


def get_database_url() -> str:
    """
    Get the database URL from settings or default.

    Returns:
        Database URL string
    """
    if settings.database_url:
        return settings.database_url

    # Default to a SQLite file in the working directory
    return "sqlite+aiosqlite:///./aio_jobs.db"


def get_database_echo() -> bool:
    """
    Check if database query logging is enabled.

    Returns:
        True if SQL queries should be logged
    """
    return settings.database_echo
