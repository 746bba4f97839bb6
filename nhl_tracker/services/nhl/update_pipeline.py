"""
NHL snapshot update pipeline.

Full run (scheduled update endpoint):
1. Skater and goalie season summaries (paginated, mandatory)
2. Team summaries -> shot rankings (mandatory)
3. Player-prop odds for the configured window (optional, degrades to empty)
4. Skater and goalie game logs (bounded batches, per-item failures counted)
5. Snapshot assembly

Reduced run (read endpoint on a cache miss): skaters only, no game logs, no
odds, so a first request never waits for the full fan-out.

A failure in a mandatory stage raises UpstreamError and aborts the run.
"""
import time
from datetime import datetime
from typing import Callable, List, Optional

import httpx

from nhl_tracker.core import metrics
from nhl_tracker.core.config import Settings
from nhl_tracker.core.logging import get_logger
from nhl_tracker.models import CacheSnapshot
from nhl_tracker.services.core.batch_fetcher import BatchResult, fetch_batched
from nhl_tracker.services.core.odds_api_service import OddsApiService
from nhl_tracker.services.nhl.name_matching import PlayerNameIndex, rekey_by_stats_name
from nhl_tracker.services.nhl.nhl_adapter import NhlApiAdapter, filter_active
from nhl_tracker.services.nhl.odds_merger import OddsMerger
from nhl_tracker.services.nhl.snapshot_builder import REDUCED_SNAPSHOT_NOTE, build_snapshot
from nhl_tracker.services.nhl.team_rankings import rank_team_shots
from nhl_tracker.utils.timezone import get_odds_window, utc_now

logger = get_logger(__name__)


class SnapshotPipeline:
    """
    Orchestrates one update cycle.

    Args:
        nhl: NHL stats/web API adapter
        odds_merger: Odds fetch-and-merge stage
        settings: Batch sizes, delays, time budget and odds window
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        nhl: NhlApiAdapter,
        odds_merger: OddsMerger,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.nhl = nhl
        self.odds_merger = odds_merger
        self.settings = settings
        self.clock = clock

    async def _fetch_game_logs(self, records: List[dict], label: str, deadline: Optional[float]) -> BatchResult:
        result = await fetch_batched(
            records,
            self.settings.GAME_LOG_BATCH_SIZE,
            lambda record: self.nhl.fetch_game_log(record["playerId"]),
            key=lambda record: record.get("playerId"),
            delay=self.settings.BATCH_DELAY_SECONDS,
            deadline=deadline,
            label=label,
        )
        metrics.record_batch_outcomes(f"{label}_game_log", result.success_count, result.error_count)
        return result

    async def run_full(self) -> CacheSnapshot:
        """
        Fetch everything and build a complete snapshot.

        Raises:
            UpstreamError: If the skater, goalie or team stats fetch fails
        """
        started = time.monotonic()
        deadline = started + self.settings.UPDATE_TIME_BUDGET_SECONDS

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        logger.info("Starting NHL data update...")

        players = filter_active(await self.nhl.fetch_skaters())
        logger.info(f"Found {len(players)} active players ({elapsed_ms()}ms)")

        goalies = filter_active(await self.nhl.fetch_goalies())
        logger.info(f"Found {len(goalies)} active goalies ({elapsed_ms()}ms)")

        teams = rank_team_shots(await self.nhl.fetch_team_summary())
        logger.info(f"Loaded stats for {len(teams)} teams ({elapsed_ms()}ms)")

        now = self.clock()
        window_start, window_end = get_odds_window(
            now,
            anchor=self.settings.ODDS_WINDOW_ANCHOR,
            hours=self.settings.ODDS_WINDOW_HOURS,
            tz_name=self.settings.ODDS_TIMEZONE,
        )
        odds = await self.odds_merger.merge(window_start, window_end, deadline=deadline)

        unmatched: List[str] = []
        if odds.betting_odds:
            index = PlayerNameIndex.build(players + goalies, fuzzy_threshold=self.settings.NAME_MATCH_THRESHOLD)
            odds.betting_odds, unmatched = rekey_by_stats_name(odds.betting_odds, index)

        game_logs = await self._fetch_game_logs(players, "players", deadline)
        logger.info(
            f"Player game logs: {game_logs.success_count} success, "
            f"{game_logs.error_count} errors ({elapsed_ms()}ms)"
        )

        goalie_logs = await self._fetch_game_logs(goalies, "goalies", deadline)
        logger.info(
            f"Goalie game logs: {goalie_logs.success_count} success, "
            f"{goalie_logs.error_count} errors ({elapsed_ms()}ms)"
        )

        snapshot = build_snapshot(
            season=self.settings.NHL_SEASON,
            players=players,
            goalies=goalies,
            teams=teams,
            game_logs=game_logs,
            goalie_logs=goalie_logs,
            odds=odds,
            now=self.clock(),
            unmatched_odds_players=unmatched,
        )
        logger.info(f"Snapshot built ({elapsed_ms()}ms)")
        return snapshot

    async def run_reduced(self) -> CacheSnapshot:
        """
        Build a just-in-time snapshot from skater summaries only.

        Raises:
            UpstreamError: If the skater stats fetch fails
        """
        players = filter_active(await self.nhl.fetch_skaters())
        logger.info(f"Reduced fetch: {len(players)} active players")

        return build_snapshot(
            season=self.settings.NHL_SEASON,
            players=players,
            goalies=[],
            teams=[],
            game_logs=None,
            goalie_logs=None,
            odds=None,
            now=self.clock(),
            note=REDUCED_SNAPSHOT_NOTE,
        )


def build_pipeline(settings: Settings, client: httpx.AsyncClient) -> SnapshotPipeline:
    """Wire the pipeline's upstream clients from settings over a shared HTTP client."""
    nhl = NhlApiAdapter(
        season=settings.NHL_SEASON,
        game_type=settings.NHL_GAME_TYPE,
        page_size=settings.STATS_PAGE_SIZE,
        stats_base=settings.NHL_STATS_API_BASE,
        web_base=settings.NHL_WEB_API_BASE,
        client=client,
        retry_attempts=settings.UPSTREAM_RETRY_ATTEMPTS,
    )

    odds_service = None
    if settings.has_odds_api_key():
        odds_service = OddsApiService(
            api_key=settings.ODDS_API_KEY,
            sport_key=settings.ODDS_SPORT_KEY,
            base_url=settings.ODDS_API_BASE,
            regions=settings.ODDS_REGIONS,
            odds_format=settings.ODDS_FORMAT,
            client=client,
        )

    odds_merger = OddsMerger(
        odds_service,
        markets=settings.odds_markets,
        batch_size=settings.ODDS_BATCH_SIZE,
        batch_delay=settings.BATCH_DELAY_SECONDS,
    )
    return SnapshotPipeline(nhl, odds_merger, settings)
