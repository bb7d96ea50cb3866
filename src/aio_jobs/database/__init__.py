"""Database package initialization."""

from .base import Base
from .config import get_database_url
from .session import SessionLocal, engine, init_db

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_database_url",
    "init_db",
]
