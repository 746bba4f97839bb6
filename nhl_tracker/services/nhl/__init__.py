"""
NHL data services.

This module contains the NHL-specific stages of the snapshot update.
"""
from nhl_tracker.services.nhl.nhl_adapter import NhlApiAdapter, filter_active
from nhl_tracker.services.nhl.odds_merger import OddsMerger, OddsMergeResult, merge_game_odds
from nhl_tracker.services.nhl.snapshot_builder import build_snapshot
from nhl_tracker.services.nhl.team_rankings import rank_team_shots
from nhl_tracker.services.nhl.update_pipeline import SnapshotPipeline, build_pipeline

__all__ = [
    "NhlApiAdapter",
    "filter_active",
    "OddsMerger",
    "OddsMergeResult",
    "merge_game_odds",
    "build_snapshot",
    "rank_team_shots",
    "SnapshotPipeline",
    "build_pipeline",
]
