"""API route modules."""

from .certificates_routes import router as certificates_router
from .health_routes import router as health_router
from .participants_routes import router as participants_router
from .preview_routes import router as preview_router
from .templates_routes import router as templates_router
from .verify_routes import router as verify_router

__all__ = [
    "certificates_router",
    "health_router",
    "participants_router",
    "preview_router",
    "templates_router",
    "verify_router",
]
