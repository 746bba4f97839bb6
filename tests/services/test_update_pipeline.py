"""Tests for the snapshot update pipeline against a fake upstream.

Test Strategy:
1. Full run: active filtering, rankings, odds re-keyed to stats names, game logs
2. Mandatory stage failure aborts; optional stage failures are counted
3. Reduced run: skaters only, no logs, no odds
"""
import httpx
import pytest

from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.services.nhl.update_pipeline import build_pipeline

from conftest import FakeUpstream, make_event_odds, make_skater, over

ODDS_HOST = "api.the-odds-api.com"


class TestRunFull:
    """Test suite for SnapshotPipeline.run_full."""

    @pytest.mark.asyncio
    async def test_full_snapshot(self, test_settings, upstream, upstream_client):
        """Should assemble stats, rankings, game logs and odds."""
        snapshot = await build_pipeline(test_settings, upstream_client).run_full()

        assert [p["playerId"] for p in snapshot.all_players] == [8478402, 8477934]
        assert [g["playerId"] for g in snapshot.all_goalies] == [8479973]
        assert [t.abbrev for t in snapshot.team_shot_data] == ["Oilers", "Flames"]

        assert set(snapshot.game_logs) == {"8478402"}
        assert set(snapshot.goalie_game_logs) == {"8479973"}

        stats = snapshot.stats
        assert stats.total_players == 2
        assert stats.game_logs_loaded == 1
        assert stats.game_log_errors == 1  # Draisaitl has no game lines
        assert stats.goalie_logs_loaded == 1
        assert stats.errors == 1
        assert stats.odds_error is None
        assert stats.odds_credits.remaining == 480

        assert snapshot.betting_odds["Connor McDavid"]["points"].line == 1.5
        assert snapshot.betting_odds["Leon Draisaitl"]["goals"].type == "anytime_scorer"
        assert snapshot.betting_odds["Stuart Skinner"]["saves"].line == 27.5
        assert snapshot.next_game_time == "2099-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_inactive_players_get_no_game_log_request(self, test_settings, upstream, upstream_client):
        """Should only request game logs for players with games played."""
        await build_pipeline(test_settings, upstream_client).run_full()

        game_log_paths = [p for p in upstream.paths() if "/game-log/" in p]
        assert "/v1/player/8470000/game-log/20252026/2" not in game_log_paths
        assert len(game_log_paths) == 3

    @pytest.mark.asyncio
    async def test_odds_names_rekeyed_to_stats_spelling(self, test_settings, upstream, upstream_client):
        """Should file odds under the stats display name and flag unknown names."""
        upstream.skaters.append(make_skater(8480069, "Tim Stützle"))
        upstream.event_odds["evt-1"] = make_event_odds(
            "evt-1", "2099-01-01T00:00:00Z",
            {"player_points": [over("Tim Stutzle", 0.5, -130), over("Call Up", 0.5, 250)]},
        )

        snapshot = await build_pipeline(test_settings, upstream_client).run_full()

        assert "Tim Stützle" in snapshot.betting_odds
        assert snapshot.stats.unmatched_odds_players == ["Call Up"]

    @pytest.mark.asyncio
    async def test_team_summary_failure_aborts(self, test_settings, upstream, upstream_client):
        """Should raise UpstreamError when a mandatory stats fetch fails."""
        upstream.fail_paths.append(r"/team/summary$")

        with pytest.raises(UpstreamError):
            await build_pipeline(test_settings, upstream_client).run_full()

        assert not any("/game-log/" in p for p in upstream.paths())

    @pytest.mark.asyncio
    async def test_odds_failure_is_not_fatal(self, test_settings, upstream, upstream_client):
        """Should finish the update with empty odds and an oddsError."""
        upstream.fail_paths.append(r"/events$")

        snapshot = await build_pipeline(test_settings, upstream_client).run_full()

        assert snapshot.betting_odds == {}
        assert snapshot.stats.odds_error == "Odds API error 500"
        assert snapshot.stats.game_logs_loaded == 1

    @pytest.mark.asyncio
    async def test_without_odds_key(self, test_settings, upstream, upstream_client):
        """Should record the missing key and never call the odds API."""
        settings = test_settings.model_copy(update={"ODDS_API_KEY": ""})

        snapshot = await build_pipeline(settings, upstream_client).run_full()

        assert snapshot.stats.odds_error == "ODDS_API_KEY not set"
        assert upstream.paths(host=ODDS_HOST) == []

    @pytest.mark.asyncio
    async def test_game_log_failures_are_counted(self, test_settings, upstream, upstream_client):
        """Should count failed game-log requests without failing the run."""
        upstream.fail_paths.append(r"/v1/player/8478402/")

        snapshot = await build_pipeline(test_settings, upstream_client).run_full()

        assert snapshot.game_logs == {}
        assert snapshot.stats.game_log_errors == 2


class TestRunReduced:
    """Test suite for SnapshotPipeline.run_reduced."""

    @pytest.mark.asyncio
    async def test_players_only(self, test_settings, upstream, upstream_client):
        """Should fetch skaters only and carry the update note."""
        snapshot = await build_pipeline(test_settings, upstream_client).run_reduced()

        assert len(snapshot.all_players) == 2
        assert snapshot.all_goalies == []
        assert snapshot.game_logs == {}
        assert snapshot.betting_odds == {}
        assert snapshot.stats.note == "Trigger /api/update-data to fetch all game logs"
        assert all("/skater/summary" in p for p in upstream.paths())
