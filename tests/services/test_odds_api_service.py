"""Unit tests for the Odds API client."""
from datetime import datetime, timezone

import httpx
import pytest

from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.services.core.odds_api_service import OddsApiService

QUOTA_HEADERS = {"x-requests-remaining": "450", "x-requests-used": "50", "x-requests-last": "5"}


def make_service(handler) -> OddsApiService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OddsApiService(api_key="secret-key", base_url="https://odds.test/v4", client=client)


class TestOddsApiService:
    """Test suite for OddsApiService."""

    @pytest.mark.asyncio
    async def test_get_events_window_params(self):
        """Should pass the commence-time window and API key."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": "evt-1"}], headers=QUOTA_HEADERS)

        service = make_service(handler)
        events = await service.get_events(
            datetime(2025, 1, 15, 5, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 16, 5, 0, tzinfo=timezone.utc),
        )

        assert events == [{"id": "evt-1"}]
        request = seen[0]
        assert request.url.path == "/v4/sports/icehockey_nhl/events"
        assert request.url.params["apiKey"] == "secret-key"
        assert request.url.params["commenceTimeFrom"] == "2025-01-15T05:00:00Z"
        assert request.url.params["commenceTimeTo"] == "2025-01-16T05:00:00Z"

    @pytest.mark.asyncio
    async def test_get_event_odds_batches_markets(self):
        """Should request every market in one call."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "evt-1", "bookmakers": []}, headers=QUOTA_HEADERS)

        service = make_service(handler)
        await service.get_event_odds("evt-1", ["player_points", "player_assists"])

        params = seen[0].url.params
        assert seen[0].url.path == "/v4/sports/icehockey_nhl/events/evt-1/odds"
        assert params["markets"] == "player_points,player_assists"
        assert params["regions"] == "us"
        assert params["oddsFormat"] == "american"

    @pytest.mark.asyncio
    async def test_tracks_credits_from_headers(self):
        """Should expose quota headers from the latest response."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[], headers=QUOTA_HEADERS)

        service = make_service(handler)
        assert service.credits is None

        await service.get_events(datetime.now(timezone.utc), datetime.now(timezone.utc))

        assert service.credits.remaining == 450
        assert service.credits.used == 50
        assert service.credits.last_cost == 5

    @pytest.mark.asyncio
    async def test_error_status(self):
        """Should raise UpstreamError carrying the status code."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "invalid key"})

        service = make_service(handler)
        with pytest.raises(UpstreamError) as exc_info:
            await service.get_event_odds("evt-1", ["player_points"])

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "Odds API error 401"

    @pytest.mark.asyncio
    async def test_events_must_be_a_list(self):
        """Should reject an events body that is not a list."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"message": "unexpected"})

        service = make_service(handler)
        with pytest.raises(UpstreamError):
            await service.get_events(datetime.now(timezone.utc), datetime.now(timezone.utc))
