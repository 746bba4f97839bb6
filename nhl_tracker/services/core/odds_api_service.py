"""
The Odds API client for NHL player props.

Two endpoints are used:
- /sports/{sport}/events: upcoming games in a commence-time window (free)
- /sports/{sport}/events/{id}/odds: all requested prop markets for one game
  in a single request (cost = markets x regions)

Quota Tracking: Response headers x-requests-remaining, x-requests-used and
x-requests-last are captured after every call.

No retries: a failed per-game request is counted by the caller and the next
update run fetches it again.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from nhl_tracker.core import metrics
from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.models import OddsCredits
from nhl_tracker.utils.timezone import to_odds_api_timestamp

logger = get_logger(__name__)

THE_ODDS_API_BASE = "https://api.the-odds-api.com/v4"


def _header_int(response: httpx.Response, name: str) -> Optional[int]:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


class OddsApiService:
    """
    The Odds API client scoped to one sport.

    Pass an ``httpx.AsyncClient`` to share a connection pool (or a mock
    transport in tests); otherwise one is created lazily and closed by close().
    """

    def __init__(
        self,
        api_key: str,
        sport_key: str = "icehockey_nhl",
        base_url: str = THE_ODDS_API_BASE,
        regions: str = "us",
        odds_format: str = "american",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.sport_key = sport_key
        self.base_url = base_url.rstrip("/")
        self.regions = regions
        self.odds_format = odds_format
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

        self._requests_remaining: Optional[int] = None
        self._requests_used: Optional[int] = None
        self._last_cost: Optional[int] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self._client

    async def close(self):
        """Close the HTTP client if this service created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def credits(self) -> Optional[OddsCredits]:
        """Quota usage from the most recent response, or None before any call."""
        if self._requests_remaining is None and self._requests_used is None and self._last_cost is None:
            return None
        return OddsCredits(
            remaining=self._requests_remaining,
            used=self._requests_used,
            last_cost=self._last_cost,
        )

    def _update_quota_from_headers(self, response: httpx.Response):
        remaining = _header_int(response, "x-requests-remaining")
        used = _header_int(response, "x-requests-used")
        last_cost = _header_int(response, "x-requests-last")

        if remaining is not None:
            self._requests_remaining = remaining
        if used is not None:
            self._requests_used = used
        if last_cost is not None:
            self._last_cost = last_cost

        if remaining is not None or used is not None:
            logger.info(
                f"Odds API credits - remaining: {self._requests_remaining}, "
                f"used: {self._requests_used}, last call cost: {self._last_cost}"
            )
            metrics.update_odds_api_quota(self._requests_remaining, self._requests_used)

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        client = await self._get_client()
        url = f"{self.base_url}{path}"
        query = {"apiKey": self.api_key, **params}

        try:
            response = await client.get(url, params=query)
        except httpx.TransportError as e:
            metrics.record_odds_api_request_failure(type(e).__name__)
            raise UpstreamError(f"Odds API request failed: {e!r}", url=url) from e

        self._update_quota_from_headers(response)

        if not response.is_success:
            metrics.record_odds_api_request_failure(f"http_{response.status_code}")
            raise UpstreamError(f"Odds API error {response.status_code}", url=url, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            metrics.record_odds_api_request_failure("invalid_json")
            raise UpstreamError("Odds API returned an unparseable body", url=url) from e

        metrics.record_odds_api_request_success()
        return data

    async def get_events(
        self,
        commence_time_from: datetime,
        commence_time_to: datetime,
    ) -> List[Dict[str, Any]]:
        """
        List upcoming games in a commence-time window.

        Returns:
            Event dicts with id, commence_time, home_team, away_team

        Raises:
            UpstreamError: On transport failure or non-2xx status
        """
        events = await self._get(
            f"/sports/{self.sport_key}/events",
            {
                "commenceTimeFrom": to_odds_api_timestamp(commence_time_from),
                "commenceTimeTo": to_odds_api_timestamp(commence_time_to),
            },
        )
        if not isinstance(events, list):
            raise UpstreamError("Odds API events response is not a list")
        return events

    async def get_event_odds(self, event_id: str, markets: List[str]) -> Dict[str, Any]:
        """
        Fetch all requested prop markets for one game in a single request.

        Args:
            event_id: The Odds API event ID
            markets: Market keys, e.g. ["player_points", "player_assists"]

        Returns:
            Event dict with nested bookmakers -> markets -> outcomes

        Raises:
            UpstreamError: On transport failure or non-2xx status
        """
        data = await self._get(
            f"/sports/{self.sport_key}/events/{event_id}/odds",
            {
                "regions": self.regions,
                "markets": ",".join(markets),
                "oddsFormat": self.odds_format,
            },
        )
        if not isinstance(data, dict):
            raise UpstreamError(f"Odds API response for event {event_id} is not an object")

        returned_markets = {
            market.get("key")
            for bookmaker in data.get("bookmakers", [])
            for market in bookmaker.get("markets", [])
        }
        logger.debug(f"Fetched odds for event {event_id}: markets = {sorted(m for m in returned_markets if m)}")
        return data
