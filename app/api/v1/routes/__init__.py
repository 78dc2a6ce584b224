"""
API v1 routes package.
Accelerator operations dashboard routes.
"""

from .health_routes import router as health_router
from .accelerator_routes import router as accelerator_router
from .checklist_routes import router as checklist_router
from .onboarding_routes import router as onboarding_router
from .alert_routes import router as alert_router

__all__ = [
    "health_router",
    "accelerator_router",
    "checklist_router",
    "onboarding_router",
    "alert_router",
]
