from fastapi import APIRouter

from lapak.app.api.v1.endpoints.health import router as health_router
from lapak.app.api.v1.endpoints.purchase import router as purchase_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(purchase_router, tags=["purchase"])
