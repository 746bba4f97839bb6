"""
FastAPI dependencies.

Process-wide objects (settings, the shared HTTP client, the durable cache
backend and the front-cache state) are created once per application in
create_app() and stored on ``app.state``; handlers receive them through
these dependencies instead of reaching for module globals.
"""
import httpx
from fastapi import Depends, Request

from nhl_tracker.core.config import Settings
from nhl_tracker.services.cache import CacheStore
from nhl_tracker.services.nhl.nhl_adapter import NhlApiAdapter
from nhl_tracker.services.nhl.update_pipeline import SnapshotPipeline, build_pipeline


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream HTTP client, created on first use if lifespan did not run."""
    client = request.app.state.http_client
    if client is None:
        settings = request.app.state.settings
        client = httpx.AsyncClient(timeout=httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS))
        request.app.state.http_client = client
    return client


def get_cache_store(request: Request, settings: Settings = Depends(get_settings)) -> CacheStore:
    """Cache store over the app's durable backend and front-cache state."""
    return CacheStore(
        backend=request.app.state.cache_backend,
        state=request.app.state.cache_state,
        key=settings.CACHE_KEY,
        freshness_seconds=settings.CACHE_FRESHNESS_SECONDS,
    )


def get_pipeline(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> SnapshotPipeline:
    """Snapshot pipeline over the shared HTTP client."""
    return build_pipeline(settings, client)


def get_nhl_adapter(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> NhlApiAdapter:
    """NHL API adapter for the proxy endpoint."""
    return NhlApiAdapter(
        season=settings.NHL_SEASON,
        game_type=settings.NHL_GAME_TYPE,
        stats_base=settings.NHL_STATS_API_BASE,
        web_base=settings.NHL_WEB_API_BASE,
        client=client,
    )
