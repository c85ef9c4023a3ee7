"""API router combining all route modules."""

from fastapi import APIRouter

from unsubscribe_service.api import health, unsubscribe

api_router = APIRouter()

# Health checks (no auth)
api_router.include_router(health.router)

# Unsubscribe flow (basic auth on every route, admission control on the link click)
api_router.include_router(
    unsubscribe.router,
    prefix="/unsubscribe",
    tags=["unsubscribe"],
)
