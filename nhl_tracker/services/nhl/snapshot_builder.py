"""
Snapshot builder: combines one update cycle's outputs into a CacheSnapshot.

Pure and deterministic given its inputs (the timestamp is passed in).
Counters are taken straight from the input collections and batch results;
upstream data is not re-validated here.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from nhl_tracker.models import CacheSnapshot, SnapshotStats, TeamShotRanking
from nhl_tracker.services.core.batch_fetcher import BatchResult
from nhl_tracker.services.nhl.odds_merger import OddsMergeResult
from nhl_tracker.utils.timezone import to_iso_z

REDUCED_SNAPSHOT_NOTE = "Trigger /api/update-data to fetch all game logs"


def _logs_by_id(result: Optional[BatchResult]) -> Dict[str, Any]:
    if result is None:
        return {}
    # JSON object keys are strings
    return {str(key): value for key, value in result.values.items()}


def build_snapshot(
    *,
    season: str,
    players: List[Dict[str, Any]],
    goalies: List[Dict[str, Any]],
    teams: List[TeamShotRanking],
    game_logs: Optional[BatchResult],
    goalie_logs: Optional[BatchResult],
    odds: Optional[OddsMergeResult],
    now: datetime,
    unmatched_odds_players: Optional[List[str]] = None,
    note: Optional[str] = None,
) -> CacheSnapshot:
    """
    Assemble a snapshot and its stats block.

    Args:
        season: NHL season id, e.g. "20252026"
        players: Active skater records
        goalies: Active goalie records
        teams: Team shot rankings
        game_logs: Skater game-log batch result (None when not fetched)
        goalie_logs: Goalie game-log batch result (None when not fetched)
        odds: Odds merge result (None when not fetched); its betting_odds
            are used as-is
        now: Creation timestamp
        unmatched_odds_players: Odds names with no stats record
        note: Optional note for clients (e.g. on reduced snapshots)

    Returns:
        CacheSnapshot
    """
    skater_logs = _logs_by_id(game_logs)
    goalie_game_logs = _logs_by_id(goalie_logs)
    game_log_errors = game_logs.error_count if game_logs else 0
    goalie_log_errors = goalie_logs.error_count if goalie_logs else 0
    betting_odds = odds.betting_odds if odds else {}

    stats = SnapshotStats(
        total_players=len(players),
        total_goalies=len(goalies),
        game_logs_loaded=game_logs.success_count if game_logs else 0,
        goalie_logs_loaded=goalie_logs.success_count if goalie_logs else 0,
        errors=game_log_errors + goalie_log_errors,
        game_log_errors=game_log_errors,
        goalie_log_errors=goalie_log_errors,
        betting_lines_loaded=len(betting_odds),
        odds_error=odds.odds_error if odds else None,
        odds_game_errors=odds.game_errors if odds else 0,
        odds_credits=odds.credits if odds else None,
        unmatched_odds_players=list(unmatched_odds_players or []),
        note=note,
    )

    return CacheSnapshot(
        last_updated=to_iso_z(now),
        next_game_time=odds.next_game_time if odds else None,
        season=season,
        all_players=players,
        all_goalies=goalies,
        game_logs=skater_logs,
        goalie_game_logs=goalie_game_logs,
        team_shot_data=teams,
        betting_odds=betting_odds,
        stats=stats,
    )
