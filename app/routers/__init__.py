"""API routers module"""

from app.routers.deletion import router as deletion_router

__all__ = [
    "deletion_router",
]
