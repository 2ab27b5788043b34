"""Health check endpoints."""

from fastapi import APIRouter

from staffplan.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness endpoint; also reports the deployment environment."""

    settings = get_settings()
    return {"status": "ok", "environment": settings.app_env}
