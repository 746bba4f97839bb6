"""
Cache snapshot models.

The snapshot is the single JSON document persisted in blob storage and
served by the read endpoint. Field names are snake_case in Python and
camelCase on the wire (lastUpdated, allPlayers, teamShotData, ...).

Skater, goalie and game-log records are passed through from the NHL APIs
verbatim as plain dicts; only the structures this service derives itself
(team rankings, betting lines, stats) are modelled.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamShotRanking(CamelModel):
    """Team shot volume with offensive and defensive ranks (1 = most shots)."""
    abbrev: str
    team_full_name: str
    shots_per_game: float = 0.0
    shots_against_per_game: float = 0.0
    games_played: int = 0
    rank: int
    defensive_rank: int


class BettingLine(CamelModel):
    """One (player, category) betting line taken from a single bookmaker."""
    line: Union[int, float]
    odds: Optional[Union[int, float]] = None
    bookmaker: Optional[str] = None
    game: str
    game_time: Optional[str] = None
    type: Optional[str] = None

    @model_serializer(mode="wrap")
    def _omit_empty_type(self, handler):
        data = handler(self)
        # Only anytime-occurrence markets carry a market-type marker
        if data.get("type") is None:
            data.pop("type", None)
        return data


class OddsCredits(CamelModel):
    """Odds API usage from the x-requests-* response headers."""
    remaining: Optional[int] = None
    used: Optional[int] = None
    last_cost: Optional[int] = None


class SnapshotStats(CamelModel):
    """Summary counters for one update cycle."""
    total_players: int = 0
    total_goalies: int = 0
    game_logs_loaded: int = 0
    goalie_logs_loaded: int = 0
    errors: int = 0
    game_log_errors: int = 0
    goalie_log_errors: int = 0
    betting_lines_loaded: int = 0
    odds_error: Optional[str] = None
    odds_game_errors: int = 0
    odds_credits: Optional[OddsCredits] = None
    unmatched_odds_players: List[str] = Field(default_factory=list)
    note: Optional[str] = None


class CacheSnapshot(CamelModel):
    """Root aggregate written once per update cycle and read many times."""
    last_updated: str
    next_game_time: Optional[str] = None
    season: str
    all_players: List[Dict[str, Any]] = Field(default_factory=list)
    all_goalies: List[Dict[str, Any]] = Field(default_factory=list)
    game_logs: Dict[str, Any] = Field(default_factory=dict)
    goalie_game_logs: Dict[str, Any] = Field(default_factory=dict)
    team_shot_data: List[TeamShotRanking] = Field(default_factory=list)
    betting_odds: Dict[str, Dict[str, BettingLine]] = Field(default_factory=dict)
    stats: SnapshotStats = Field(default_factory=SnapshotStats)

    def to_json_bytes(self) -> bytes:
        """Serialise to the wire format stored in the cache."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, blob: bytes) -> "CacheSnapshot":
        """Parse a stored snapshot."""
        return cls.model_validate_json(blob)
