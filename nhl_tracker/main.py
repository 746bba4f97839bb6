"""
Main FastAPI application for the NHL Player Tracker data service.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from nhl_tracker.api.deps import get_cache_store, get_settings
from nhl_tracker.api.routes import data, nhl_proxy, update
from nhl_tracker.core.config import Settings, settings as default_settings
from nhl_tracker.core.exceptions import AuthError
from nhl_tracker.core.logging import configure_logging, get_logger
from nhl_tracker.core.middleware import CorrelationIdMiddleware
from nhl_tracker.services.cache import BlobBackend, CacheState, CacheStore, create_backend

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} (cache backend: {settings.CACHE_BACKEND})")

    owns_client = app.state.http_client is None
    if owns_client:
        app.state.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS)
        )

    yield

    if owns_client and app.state.http_client is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
    logger.info("Shutting down application")


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


def create_app(
    settings: Optional[Settings] = None,
    cache_backend: Optional[BlobBackend] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to run with (defaults to the environment-loaded ones)
        cache_backend: Durable snapshot backend (defaults to CACHE_BACKEND)
        http_client: Shared upstream client; created in lifespan when omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings

    configure_logging(
        level=settings.LOG_LEVEL,
        json_output=not settings.is_development(),
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Cached NHL player stats, game logs, team shot rankings and player-prop odds",
        lifespan=lifespan,
    )

    # One front cache and one backend per process, shared by every request
    app.state.settings = settings
    app.state.cache_backend = cache_backend or create_backend(settings)
    app.state.cache_state = CacheState()
    app.state.http_client = http_client

    app.add_exception_handler(AuthError, auth_error_handler)

    app.add_middleware(CorrelationIdMiddleware)

    instrumentator = Instrumentator()
    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(data.router)
    app.include_router(update.router)
    app.include_router(nhl_proxy.router)

    @app.get("/health")
    async def health_check(
        store: CacheStore = Depends(get_cache_store),
        app_settings: Settings = Depends(get_settings),
    ):
        """Health check with durable snapshot presence."""
        try:
            snapshot_present = await store.exists()
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": app_settings.APP_VERSION,
                    "cache_backend": store.backend.name,
                    "error": str(e),
                },
            )

        return {
            "status": "healthy",
            "name": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "cache_backend": store.backend.name,
            "snapshot_present": snapshot_present,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "nhl_tracker.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
    )
