"""
Pass-through proxy to the NHL web API, for browser clients blocked by CORS.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from nhl_tracker.api.deps import get_nhl_adapter
from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.services.nhl.nhl_adapter import NhlApiAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["nhl-proxy"])


@router.get("/nhl")
async def proxy_nhl(
    endpoint: Optional[str] = Query(None, description="NHL web API path, e.g. /v1/schedule/now"),
    nhl: NhlApiAdapter = Depends(get_nhl_adapter),
):
    """Forward a GET to ``NHL_WEB_API_BASE + endpoint`` and return its JSON."""
    if not endpoint:
        return JSONResponse(status_code=400, content={"error": "Missing endpoint parameter"})

    try:
        return await nhl.proxy(endpoint)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except UpstreamError as e:
        logger.error(f"NHL API proxy error for {endpoint}: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch from NHL API", "message": str(e)},
        )


@router.options("/nhl")
async def proxy_preflight():
    """CORS preflight."""
    return Response(status_code=200)
