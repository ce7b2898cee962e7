"""API routers."""

from .generate import router as generate_router
from .health import router as health_router
from .license import router as license_router
from .models import router as models_router

__all__ = [
    "generate_router",
    "health_router",
    "license_router",
    "models_router",
]
