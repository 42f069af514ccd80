"""FastAPI application for the memo triage service.

Run with ``memo-triage`` (see ``run``) or ``uvicorn memo_triage.main:app``.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from memo_triage import __version__
from memo_triage.api.exception_handlers import register_exception_handlers
from memo_triage.api.v1 import health
from memo_triage.api.v1.router import router as v1_router
from memo_triage.config import Settings, get_settings
from memo_triage.utils.logging import get_logger, set_request_id, setup_logging

REQUEST_ID_HEADER = "X-Request-ID"

setup_logging()
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    chunking = settings.chunking
    logger.info(f"Starting {settings.app_name} {__version__} ({settings.environment.value})")
    logger.info(
        f"Chunk budget: max_tokens={chunking.max_tokens_per_chunk}, "
        f"overlap={chunking.overlap_tokens}, auto_chunk={chunking.auto_chunk_max_tokens}"
    )
    logger.info(f"LLM: {settings.llm.model_name} (configured={settings.llm.is_configured})")
    logger.info(f"Parsing service: {settings.juicer.url}")
    yield
    logger.info(f"{settings.app_name} stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application: middleware, error handlers and routes."""
    settings = settings or get_settings()
    docs_enabled = not settings.is_production

    app = FastAPI(
        title="Memo Triage Service",
        description="Document chunking, classification and scope-focused summarization "
        "for investment memo authoring",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=3600,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_id(request_id)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    register_exception_handlers(app)
    app.include_router(v1_router)

    # Probes are also served at the root for load balancers
    app.add_api_route("/health", health.health_check, methods=["GET"], include_in_schema=False)
    app.add_api_route("/ready", health.readiness_check, methods=["GET"], include_in_schema=False)

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "running",
            "docs": app.docs_url,
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "memo_triage.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload and settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
