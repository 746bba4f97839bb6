"""
Team shot-volume rankings.

rank: 1 = most shots for per game (offense)
defensiveRank: 1 = most shots against per game (weakest shot suppression)

Both ranks are dense permutations of 1..N. Python's sort is stable, so ties
keep the upstream order.
"""
from typing import Any, Dict, List

from nhl_tracker.models import TeamShotRanking


def rank_team_shots(teams: List[Dict[str, Any]]) -> List[TeamShotRanking]:
    """
    Build offensive and defensive shot rankings from team summaries.

    Args:
        teams: NHL stats API team summary records

    Returns:
        Rankings ordered by offensive rank
    """
    rows = [
        {
            "abbrev": team.get("teamCommonName") or team.get("teamFullName") or "",
            "team_full_name": team.get("teamFullName") or "",
            "shots_per_game": float(team.get("shotsForPerGame") or 0),
            "shots_against_per_game": float(team.get("shotsAgainstPerGame") or 0),
            "games_played": int(team.get("gamesPlayed") or 0),
        }
        for team in teams
    ]

    by_offense = sorted(range(len(rows)), key=lambda i: rows[i]["shots_per_game"], reverse=True)
    by_defense = sorted(range(len(rows)), key=lambda i: rows[i]["shots_against_per_game"], reverse=True)

    defensive_rank = {row_index: rank for rank, row_index in enumerate(by_defense, start=1)}

    return [
        TeamShotRanking(**rows[i], rank=rank, defensive_rank=defensive_rank[i])
        for rank, i in enumerate(by_offense, start=1)
    ]
