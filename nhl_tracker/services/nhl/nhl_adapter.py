"""
NHL API adapter for the stats and web APIs.

Sources:
- NHL Stats REST API (api.nhle.com/stats/rest): paginated skater and goalie
  season summaries, team summaries
- NHL Web API (api-web.nhle.com): per-player game logs, and arbitrary paths
  through the proxy endpoint

Season ids use the NHL's 8-digit form, e.g. "20252026".
"""
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx

from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.services.core.pagination import fetch_all_pages, get_json

logger = get_logger(__name__)

NHL_STATS_API_BASE = "https://api.nhle.com/stats/rest/en"
NHL_WEB_API_BASE = "https://api-web.nhle.com"

# Stable ordering so offset pagination never skips or repeats a player
_PLAYER_ID_SORT = json.dumps([{"property": "playerId", "direction": "ASC"}])


def filter_active(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep only records with gamesPlayed > 0 (missing counts as 0)."""
    return [r for r in records if (r.get("gamesPlayed") or 0) > 0]


class NhlApiAdapter:
    """
    Client for the NHL stats and web APIs.

    Pass an ``httpx.AsyncClient`` to share a connection pool (or a mock
    transport in tests); otherwise one is created lazily and closed by close().
    """

    def __init__(
        self,
        season: str,
        game_type: int = 2,
        page_size: int = 100,
        stats_base: str = NHL_STATS_API_BASE,
        web_base: str = NHL_WEB_API_BASE,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
    ):
        self.season = season
        self.game_type = game_type
        self.page_size = page_size
        self.stats_base = stats_base.rstrip("/")
        self.web_base = web_base.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
        return self._client

    async def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _summary_query(self, report: str):
        def build(start: int, limit: int) -> Tuple[str, Dict[str, Any]]:
            return (
                f"{self.stats_base}/{report}/summary",
                {
                    "limit": limit,
                    "start": start,
                    "sort": _PLAYER_ID_SORT,
                    "cayenneExp": f"seasonId={self.season}",
                },
            )
        return build

    async def fetch_skaters(self) -> List[Dict[str, Any]]:
        """
        Fetch every skater season summary (all pages).

        Raises:
            UpstreamError: If any page fails
        """
        client = await self._get_client()
        return await fetch_all_pages(
            client, self.page_size, self._summary_query("skater"), retry_attempts=self.retry_attempts
        )

    async def fetch_goalies(self) -> List[Dict[str, Any]]:
        """
        Fetch every goalie season summary (all pages).

        Raises:
            UpstreamError: If any page fails
        """
        client = await self._get_client()
        return await fetch_all_pages(
            client, self.page_size, self._summary_query("goalie"), retry_attempts=self.retry_attempts
        )

    async def fetch_team_summary(self) -> List[Dict[str, Any]]:
        """
        Fetch season summaries for all teams (single request).

        Raises:
            UpstreamError: On failure or a body without a ``data`` list
        """
        client = await self._get_client()
        url = f"{self.stats_base}/team/summary"
        body = await get_json(
            client, url, params={"cayenneExp": f"seasonId={self.season}"}, retry_attempts=self.retry_attempts
        )
        teams = body.get("data") if isinstance(body, dict) else None
        if not isinstance(teams, list):
            raise UpstreamError(f"{url} response has no 'data' list", url=url)
        return teams

    async def fetch_game_log(self, player_id: int) -> Optional[Dict[str, Any]]:
        """
        Fetch one player's game log for the configured season and game type.

        Single attempt: per-player failures are counted by the batch fetcher
        and picked up again by the next update run.

        Returns:
            The game-log document, or None when it has no game lines

        Raises:
            UpstreamError: On transport failure or non-2xx status
        """
        client = await self._get_client()
        url = f"{self.web_base}/v1/player/{player_id}/game-log/{self.season}/{self.game_type}"
        body = await get_json(client, url, retry_attempts=1)
        if isinstance(body, dict) and body.get("gameLog"):
            return body
        return None

    async def proxy(self, endpoint: str) -> Any:
        """
        Forward a GET to the NHL web API, e.g. ``/v1/schedule/now``.

        Raises:
            ValueError: If endpoint is not an absolute path
            UpstreamError: On transport failure or non-2xx status
        """
        if not endpoint.startswith("/") or endpoint.startswith("//"):
            raise ValueError(f"endpoint must be an absolute path, got {endpoint!r}")
        client = await self._get_client()
        url = f"{self.web_base}{endpoint}"
        logger.info(f"Fetching from NHL API: {url}")
        return await get_json(client, url, retry_attempts=1)
