"""API routers."""

from .admin import router as admin_router
from .embeddings import router as embeddings_router
from .sessions import router as sessions_router
from .translations import router as translations_router

__all__ = ["admin_router", "embeddings_router", "sessions_router", "translations_router"]
