"""API v1 routes."""

from fastapi import APIRouter

from hse_inspect.api.v1 import auth, devsecops, forms, health, inspections, notifications, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/admin/users", tags=["admin"])
router.include_router(notifications.router, prefix="/admin/notifications", tags=["admin"])
router.include_router(forms.router, prefix="/admin/forms", tags=["admin"])
router.include_router(inspections.router, prefix="/inspections", tags=["inspections"])
router.include_router(devsecops.router, prefix="/devsecops", tags=["devsecops"])
