"""FastAPI API endpoints under /api.

Endpoint groups: health, sample users, quest experience (seed user, custom
user, batch simulation, channel assets) and brand configuration.
"""

from fastapi import APIRouter

from .brand_config import router as brand_config_router
from .experience import router as experience_router
from .health import router as health_router
from .users import router as users_router

router = APIRouter()
router.include_router(health_router)
router.include_router(users_router)
router.include_router(experience_router)
router.include_router(brand_config_router)
