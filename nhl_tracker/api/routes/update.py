"""
Scheduled snapshot update endpoint.

Invoked by an external scheduler with ``Authorization: Bearer <CRON_SECRET>``.
Runs the full pipeline and overwrites the stored snapshot.
"""
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nhl_tracker.api.deps import get_cache_store, get_pipeline
from nhl_tracker.core import metrics
from nhl_tracker.core.auth import verify_cron_secret
from nhl_tracker.core.logging import get_logger
from nhl_tracker.services.cache import CacheStore
from nhl_tracker.services.nhl.update_pipeline import SnapshotPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["update"])

NO_GAMES_FOUND = "No games found"


@router.api_route("/update-data", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def update_data(
    store: CacheStore = Depends(get_cache_store),
    pipeline: SnapshotPipeline = Depends(get_pipeline),
):
    """
    Fetch fresh NHL stats, game logs and odds, then replace the cached snapshot.

    Returns:
        Update summary with the stats block and blob location, or
        ``{"success": false, "error": ...}`` with status 500
    """
    started = time.monotonic()
    try:
        snapshot = await pipeline.run_full()
        blob_url = await store.write(snapshot.to_json_bytes())
    except Exception as e:
        duration = time.monotonic() - started
        metrics.record_snapshot_update("failure", duration)
        logger.error(f"Error updating NHL data: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    duration = time.monotonic() - started
    metrics.record_snapshot_update("success", duration)
    logger.info(f"NHL data update complete in {int(duration * 1000)}ms")

    return {
        "success": True,
        "message": "NHL data updated successfully",
        "lastUpdated": snapshot.last_updated,
        "nextGameTime": snapshot.next_game_time or NO_GAMES_FOUND,
        "executionTime": f"{int(duration * 1000)}ms",
        "stats": snapshot.stats.model_dump(by_alias=True),
        "blobUrl": blob_url,
    }
