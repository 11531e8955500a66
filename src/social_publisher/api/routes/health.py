"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from social_publisher import __version__
from social_publisher.api.deps import ContainerDep
from social_publisher.domain.enums import Platform

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    publisher_mode: str
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check(container: ContainerDep) -> HealthResponse:
    """Basic health check - is the API up?

    Components report which platforms have app credentials configured.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        publisher_mode=container.settings.publisher_mode,
        components={p.value: container.credentials.is_configured(p) for p in Platform},
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
