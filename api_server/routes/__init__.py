"""API routes"""

from .health import router as health_router
from .board import router as board_router
from .profiles import router as profiles_router

__all__ = ["health_router", "board_router", "profiles_router"]
