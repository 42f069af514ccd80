"""Version 1 API: every public route lives under ``/api/v1``."""

from fastapi import APIRouter

from memo_triage.api.v1 import chunking, classification, health, summary

router = APIRouter(prefix="/api/v1")

for module in (health, summary, classification, chunking):
    router.include_router(module.router)


@router.get("/", summary="API information", tags=["v1"])
async def api_info():
    return {
        "version": "v1",
        "service": "memo-triage",
        "endpoints": {
            "health": "/api/v1/health",
            "ready": "/api/v1/ready",
            "smart_summary": "/api/v1/smart-summary",
            "classify": "/api/v1/classify",
            "classify_regenerate": "/api/v1/classify/regenerate",
            "chunking_plan": "/api/v1/chunking/plan",
            "chunking_analyze": "/api/v1/chunking/analyze",
        },
    }
