"""
FastAPI application entry point.

Run with:
    python -m backend.app.main

Or through uvicorn directly:
    uvicorn backend.app.main:app --port 8080

SIGINT / SIGTERM stop new connections; in-flight requests get
SHUTDOWN_GRACE_SECONDS to finish before the server force-closes.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

# ── Core infrastructure ──
from backend.app.core.config import settings
from backend.app.core.container import Dependencies, build_dependencies
from backend.app.core.errors import register_error_handlers
from backend.app.core.logging_config import setup_logging, get_logger
from backend.app.core.middleware import RequestLoggingMiddleware

# ── API routers ──
from backend.app.api.v1.clients import router as clients_router
from backend.app.api.v1.health import router as health_router
from backend.app.api.v1.search import router as search_router

# ── Initialise logging ──
setup_logging()
logger = get_logger(__name__)


# ── Application lifespan (startup / shutdown) ──

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect dependencies on startup, release them on shutdown."""
    logger.info(
        "Starting %s v%s [%s]",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    owned = app.state.deps is None
    if owned:
        try:
            app.state.deps = await build_dependencies(settings)
        except Exception as e:
            logger.critical("Startup failed: %s", e)
            raise
    yield
    logger.info("Shutting down %s", settings.APP_NAME)
    deps: Dependencies = app.state.deps
    if owned:
        await deps.close(settings.SHUTDOWN_GRACE_SECONDS)
    else:
        await deps.dispatcher.drain(settings.SHUTDOWN_GRACE_SECONDS)


# ── Create application ──

def create_app(dependencies: Optional[Dependencies] = None) -> FastAPI:
    """Build the app; pass ``dependencies`` to inject alternate adapters."""
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Client records for a wellness center: create, fetch, replace "
            "and search clients, with composite dependency health."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.deps = dependencies

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(clients_router)
    app.include_router(search_router)
    app.include_router(health_router)

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs",
        }

    @app.get("/health/live", tags=["health"])
    async def liveness():
        """Liveness probe — is the process alive?"""
        return {"status": "alive"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
        log_config=None,
    )


if __name__ == "__main__":
    run()
