"""Liveness and readiness probes."""

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from memo_triage.config import Settings, get_settings

router = APIRouter(tags=["health"])


def _service_info(settings: Settings) -> Dict[str, Any]:
    return {"app_name": settings.app_name, "environment": settings.environment.value}


def readiness_checks(settings: Settings) -> Dict[str, bool]:
    """Dependencies that must be configured before requests can succeed."""
    return {
        "llm": settings.llm.is_configured,
        "parser": bool(settings.juicer.url),
    }


@router.get("/health")
async def health_check():
    """Liveness: the process is up. External services are not contacted."""
    return {"status": "healthy", **_service_info(get_settings())}


@router.get("/ready")
async def readiness_check():
    """Readiness: 200 when every check passes, 503 with the failing checks otherwise."""
    settings = get_settings()
    checks = readiness_checks(settings)
    ready = all(checks.values())
    body = {"status": "ready" if ready else "not_ready", **_service_info(settings), "checks": checks}
    return body if ready else JSONResponse(status_code=503, content=body)
