"""Health check endpoints."""

from fastapi import APIRouter

from unsubscribe_service.core.deps import AppSettings, Workflow
from unsubscribe_service.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: AppSettings, workflow: Workflow) -> HealthResponse:
    """
    Health check endpoint.

    Reports service status plus the size of the in-memory state.
    """
    return HealthResponse(
        status="healthy",
        version=settings.version,
        environment=settings.environment,
        checks={
            "pending_tokens": len(workflow.store),
            "mailing_list": len(workflow.mailing_list),
            "templates": len(workflow.templates),
        },
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for Kubernetes/container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}
