"""API routers."""

from server.routers.drag import router as drag_router

__all__ = ["drag_router"]
