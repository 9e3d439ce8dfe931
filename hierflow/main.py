"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hierflow import __version__
from hierflow.api.container import get_container
from hierflow.api.dependencies import limiter
from hierflow.api.routes.workflow import router as workflow_router
from hierflow.shared.logging import setup_logging

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config, set up logging. Shutdown: close the LLM client."""
    container = get_container()
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )
    log.info(
        "startup_complete",
        llm_provider=c.llm.provider,
        model=c.workflow.model,
        variant=c.workflow.variant.value,
    )
    yield
    log.info("shutdown_begin", active_runs=len(container.run_registry.active()))
    if hasattr(container.llm, "close"):
        try:
            await container.llm.close()
        except Exception:  # noqa: BLE001
            log.debug("llm_close_error", exc_info=True)
    log.info("shutdown_complete")


app = FastAPI(
    title="hierflow",
    version=__version__,
    description="Planner / Enhancer / Builder agent workflow",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_container().config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(workflow_router)


@app.get("/health")
@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Health check with LLM availability."""
    container = get_container()
    return {
        "status": "ok",
        "service": "hierflow",
        "llm_provider": container.config.llm.provider,
        "llm_available": await container.llm.is_available(),
    }
