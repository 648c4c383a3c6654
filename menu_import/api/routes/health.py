# menu_import/api/routes/health.py
"""Health check endpoints."""

from fastapi import APIRouter

from menu_import.api.schemas import HealthResponse, ReadinessResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check():
    """Simple health check."""
    return {"status": "ok"}


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check():
    """Readiness check: model key configured and upload storage present."""
    from menu_import.config import get_settings
    from menu_import.services.storage import get_storage_service

    settings = get_settings()
    storage = get_storage_service()

    checks = {
        "config": bool(settings.OPENROUTER_API_KEY),
        "storage": storage.root_dir.exists(),
    }

    if all(checks.values()):
        return {"status": "ready", "checks": checks}
    return {"status": "not ready", "checks": checks}
