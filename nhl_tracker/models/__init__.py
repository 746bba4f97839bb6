"""
Snapshot models for the NHL tracker.

Usage:
    from nhl_tracker.models import CacheSnapshot, BettingLine
"""
from nhl_tracker.models.snapshot import (
    CamelModel,
    TeamShotRanking,
    BettingLine,
    OddsCredits,
    SnapshotStats,
    CacheSnapshot,
)

__all__ = [
    "CamelModel",
    "TeamShotRanking",
    "BettingLine",
    "OddsCredits",
    "SnapshotStats",
    "CacheSnapshot",
]
