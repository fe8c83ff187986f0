"""API route modules."""

from .exports import router as exports_router
from .health import router as health_router

__all__ = ["health_router", "exports_router"]
