"""
Snapshot read endpoint.

Serves the cached snapshot exactly as it was written. When nothing has been
written yet, either builds a reduced snapshot on the spot (READ_FALLBACK=fetch)
or answers 503 (READ_FALLBACK=unavailable).
"""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from nhl_tracker.api.deps import get_cache_store, get_pipeline, get_settings
from nhl_tracker.core import metrics
from nhl_tracker.core.config import Settings
from nhl_tracker.core.exceptions import CacheMissError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.services.cache import CacheStore
from nhl_tracker.services.nhl.update_pipeline import SnapshotPipeline

logger = get_logger(__name__)

router = APIRouter(tags=["data"])

CACHE_SOURCE_HEADER = "X-Cache-Source"


@router.get("/data")
@router.get("/api/get-data")
async def get_data(
    store: CacheStore = Depends(get_cache_store),
    pipeline: SnapshotPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Return the current snapshot.

    Returns:
        Snapshot JSON (200), "no data yet" error (503) or failure detail (500)
    """
    try:
        try:
            cached = await store.read()
            return Response(
                content=cached.blob,
                media_type="application/json",
                headers={CACHE_SOURCE_HEADER: cached.source},
            )
        except CacheMissError:
            if settings.READ_FALLBACK == "unavailable":
                logger.warning("No snapshot cached and read fallback disabled")
                return JSONResponse(status_code=503, content={"error": "No cached data available"})

        # Reduced snapshot is served, never persisted
        logger.info("No cache found, fetching reduced snapshot...")
        snapshot = await pipeline.run_reduced()
        metrics.record_cache_read("fallback")
        return Response(
            content=snapshot.to_json_bytes(),
            media_type="application/json",
            headers={CACHE_SOURCE_HEADER: "fallback"},
        )

    except Exception as e:
        logger.error(f"Failed to serve data: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to serve data", "message": str(e)},
        )


@router.options("/data")
@router.options("/api/get-data")
async def data_preflight():
    """CORS preflight."""
    return Response(status_code=200)
