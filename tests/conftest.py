"""Shared pytest fixtures for nhl-tracker tests."""
import re
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

from nhl_tracker.core.config import Settings
from nhl_tracker.services.cache import MemoryBackend


def make_skater(player_id: int, name: str, games_played: int = 10, **stats) -> Dict[str, Any]:
    """NHL stats API skater summary record."""
    return {"playerId": player_id, "skaterFullName": name, "gamesPlayed": games_played, **stats}


def make_goalie(player_id: int, name: str, games_played: int = 10, **stats) -> Dict[str, Any]:
    """NHL stats API goalie summary record."""
    return {"playerId": player_id, "goalieFullName": name, "gamesPlayed": games_played, **stats}


def make_team(full_name: str, common_name: str, shots_for: float, shots_against: float) -> Dict[str, Any]:
    """NHL stats API team summary record."""
    return {
        "teamFullName": full_name,
        "teamCommonName": common_name,
        "shotsForPerGame": shots_for,
        "shotsAgainstPerGame": shots_against,
        "gamesPlayed": 20,
    }


def make_event_odds(
    event_id: str,
    commence_time: str,
    outcomes_by_market: Dict[str, List[Dict[str, Any]]],
    bookmaker: str = "DraftKings",
    home_team: str = "Edmonton Oilers",
    away_team: str = "Calgary Flames",
    extra_bookmakers: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Odds API event odds document with a single bookmaker (plus any extras)."""
    return {
        "id": event_id,
        "commence_time": commence_time,
        "home_team": home_team,
        "away_team": away_team,
        "bookmakers": [
            {
                "key": bookmaker.lower(),
                "title": bookmaker,
                "markets": [
                    {"key": market_key, "outcomes": outcomes}
                    for market_key, outcomes in outcomes_by_market.items()
                ],
            }
        ] + list(extra_bookmakers or []),
    }


def over(name: str, point: float, price: int) -> Dict[str, Any]:
    return {"name": "Over", "description": name, "point": point, "price": price}


def under(name: str, point: float, price: int) -> Dict[str, Any]:
    return {"name": "Under", "description": name, "point": point, "price": price}


def anytime(name: str, price: int) -> Dict[str, Any]:
    return {"name": "Yes", "description": name, "price": price}


class FakeUpstream:
    """
    In-process stand-in for the NHL stats/web APIs and The Odds API.

    Serves paginated summaries honoring ``start``/``limit``, per-player game
    logs, the events listing and per-event odds. Every request is recorded.
    Set ``fail_paths`` to regex patterns whose matching paths answer 500.
    """

    def __init__(
        self,
        skaters: Optional[List[Dict[str, Any]]] = None,
        goalies: Optional[List[Dict[str, Any]]] = None,
        teams: Optional[List[Dict[str, Any]]] = None,
        game_logs: Optional[Dict[int, List[Dict[str, Any]]]] = None,
        events: Optional[List[Dict[str, Any]]] = None,
        event_odds: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.skaters = skaters or []
        self.goalies = goalies or []
        self.teams = teams or []
        self.game_logs = game_logs or {}
        self.events = events or []
        self.event_odds = event_odds or {}
        self.fail_paths: List[str] = []
        self.requests: List[httpx.Request] = []

    def paths(self, host: Optional[str] = None) -> List[str]:
        return [r.url.path for r in self.requests if host is None or r.url.host == host]

    def _page(self, request: httpx.Request, records: List[Dict[str, Any]]) -> httpx.Response:
        start = int(request.url.params.get("start", 0))
        limit = int(request.url.params.get("limit", 100))
        return httpx.Response(200, json={"data": records[start:start + limit], "total": len(records)})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if any(re.search(pattern, path) for pattern in self.fail_paths):
            return httpx.Response(500, json={"message": "upstream failure"})

        if path.endswith("/skater/summary"):
            return self._page(request, self.skaters)
        if path.endswith("/goalie/summary"):
            return self._page(request, self.goalies)
        if path.endswith("/team/summary"):
            return httpx.Response(200, json={"data": self.teams})

        match = re.match(r"^/v1/player/(\d+)/game-log/", path)
        if match:
            lines = self.game_logs.get(int(match.group(1)), [])
            return httpx.Response(200, json={"seasonId": 20252026, "gameLog": lines})

        quota = {"x-requests-remaining": "480", "x-requests-used": "20", "x-requests-last": "5"}
        if path.endswith("/events"):
            return httpx.Response(200, json=self.events, headers=quota)
        match = re.match(r"^.*/events/([^/]+)/odds$", path)
        if match and match.group(1) in self.event_odds:
            return httpx.Response(200, json=self.event_odds[match.group(1)], headers=quota)

        if path.startswith("/v1/"):
            return httpx.Response(200, json={"path": path})

        return httpx.Response(404, json={"message": f"no route for {path}"})


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any .env file, with delays and retries off."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        CRON_SECRET="test-cron-secret",
        ODDS_API_KEY="test-odds-key",
        CACHE_BACKEND="memory",
        BATCH_DELAY_SECONDS=0,
        UPSTREAM_RETRY_ATTEMPTS=1,
        STATS_PAGE_SIZE=2,
        GAME_LOG_BATCH_SIZE=2,
        ODDS_BATCH_SIZE=2,
        ODDS_WINDOW_ANCHOR="now",
        ODDS_WINDOW_HOURS=48,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def upstream() -> FakeUpstream:
    """A small league: three skaters (one inactive), one goalie, two teams, one game."""
    return FakeUpstream(
        skaters=[
            make_skater(8478402, "Connor McDavid", points=30),
            make_skater(8477934, "Leon Draisaitl", points=28),
            make_skater(8470000, "Healthy Scratch", games_played=0),
        ],
        goalies=[make_goalie(8479973, "Stuart Skinner")],
        teams=[
            make_team("Edmonton Oilers", "Oilers", 33.1, 27.0),
            make_team("Calgary Flames", "Flames", 29.4, 30.2),
        ],
        game_logs={
            8478402: [{"gameId": 2025020001, "points": 2}],
            8479973: [{"gameId": 2025020001, "saves": 31}],
        },
        events=[
            {
                "id": "evt-1",
                "commence_time": "2099-01-01T00:00:00Z",
                "home_team": "Edmonton Oilers",
                "away_team": "Calgary Flames",
            }
        ],
        event_odds={
            "evt-1": make_event_odds(
                "evt-1",
                "2099-01-01T00:00:00Z",
                {
                    "player_points": [over("Connor McDavid", 1.5, -140)],
                    "player_goal_scorer_anytime": [anytime("Leon Draisaitl", 120)],
                    "player_total_saves": [over("Stuart Skinner", 27.5, -115)],
                },
            )
        },
    )


@pytest.fixture
async def upstream_client(upstream: FakeUpstream) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client whose requests are answered by the fake upstream."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def app(test_settings: Settings, memory_backend: MemoryBackend, upstream_client: httpx.AsyncClient):
    """Application wired to the memory backend and the fake upstream."""
    from nhl_tracker.main import create_app

    return create_app(settings=test_settings, cache_backend=memory_backend, http_client=upstream_client)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def auth_headers(test_settings: Settings) -> Dict[str, str]:
    return {"Authorization": f"Bearer {test_settings.CRON_SECRET}"}
