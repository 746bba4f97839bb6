"""
NHL player-prop odds merger.

Fetches every upcoming game's prop markets (one request per game covering
all markets) and folds the outcomes into a name-keyed mapping of categories:

    {"Connor McDavid": {"points": BettingLine, "goals": BettingLine, ...}}

Rules:
- One bookmaker per game (the first listed); books are never mixed within
  a game because their lines are not comparable
- "Over" outcomes with a point fill points/assists/shots/saves
- Anytime goal scorer "Yes" fills goals with a synthetic 0.5 line tagged
  type="anytime_scorer"
- First write wins per (player, category). Games are processed in
  (commence_time, id) order, so the result does not depend on the order the
  API listed them

A failure of the odds stage as a whole never aborts the update; it is
reported as an odds_error string with empty odds.
"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from nhl_tracker.core import metrics
from nhl_tracker.core.exceptions import ConfigError, UpstreamError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.models import BettingLine, OddsCredits
from nhl_tracker.services.core.batch_fetcher import fetch_batched
from nhl_tracker.services.core.odds_api_service import OddsApiService
from nhl_tracker.services.nhl.name_matching import normalize_name

logger = get_logger(__name__)

# Over/under market key -> snapshot category
OVER_MARKETS = {
    "player_points": "points",
    "player_assists": "assists",
    "player_shots_on_goal": "shots",
    "player_total_saves": "saves",
}

ANYTIME_GOAL_MARKET = "player_goal_scorer_anytime"
ANYTIME_GOAL_CATEGORY = "goals"
ANYTIME_LINE = 0.5
ANYTIME_TYPE = "anytime_scorer"


@dataclass
class OddsMergeResult:
    """Merged odds plus the diagnostics recorded in the snapshot stats."""
    betting_odds: Dict[str, Dict[str, BettingLine]] = field(default_factory=dict)
    odds_error: Optional[str] = None
    next_game_time: Optional[str] = None
    credits: Optional[OddsCredits] = None
    game_errors: int = 0
    games_processed: int = 0


def _game_sort_key(game: Dict[str, Any]):
    return (game.get("commence_time") or "", str(game.get("id") or ""))


def merge_game_odds(
    games: List[Dict[str, Any]],
    betting_odds: Optional[Dict[str, Dict[str, BettingLine]]] = None,
) -> Dict[str, Dict[str, BettingLine]]:
    """
    Fold bookmaker outcomes from game odds documents into name-keyed lines.

    Args:
        games: Event odds documents (id, commence_time, home_team, away_team,
            bookmakers -> markets -> outcomes)
        betting_odds: Existing mapping to extend in place (first write wins)

    Returns:
        Mapping of player display name -> category -> BettingLine
    """
    if betting_odds is None:
        betting_odds = {}

    # Merge key is the normalized name; the first display name seen is kept
    names: Dict[str, str] = {normalize_name(name): name for name in betting_odds}

    for game in sorted(games, key=_game_sort_key):
        bookmakers = game.get("bookmakers") or []
        if not bookmakers:
            continue
        bookmaker = bookmakers[0]
        matchup = f"{game.get('home_team')} vs {game.get('away_team')}"

        for market in bookmaker.get("markets") or []:
            market_key = market.get("key")

            for outcome in market.get("outcomes") or []:
                player_name = outcome.get("description")
                key = normalize_name(player_name)
                if not key:
                    continue

                if outcome.get("name") == "Over" and outcome.get("point") is not None:
                    category = OVER_MARKETS.get(market_key)
                    line_value = outcome["point"]
                    line_type = None
                elif market_key == ANYTIME_GOAL_MARKET and outcome.get("name") == "Yes":
                    category = ANYTIME_GOAL_CATEGORY
                    line_value = ANYTIME_LINE
                    line_type = ANYTIME_TYPE
                else:
                    continue

                if category is None:
                    continue

                name = names.setdefault(key, player_name)
                player_lines = betting_odds.setdefault(name, {})
                if category in player_lines:
                    continue

                player_lines[category] = BettingLine(
                    line=line_value,
                    odds=outcome.get("price"),
                    bookmaker=bookmaker.get("title"),
                    game=matchup,
                    game_time=game.get("commence_time"),
                    type=line_type,
                )

    return {name: lines for name, lines in betting_odds.items() if lines}


class OddsMerger:
    """
    Fetch and merge player-prop odds for the games in a time window.

    Args:
        odds_service: Odds API client, or None when no API key is configured
        markets: Market keys requested per game
        batch_size: Concurrent per-game requests
        batch_delay: Seconds between batches
    """

    def __init__(
        self,
        odds_service: Optional[OddsApiService],
        markets: List[str],
        batch_size: int = 10,
        batch_delay: float = 0.1,
    ):
        self.odds_service = odds_service
        self.markets = markets
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def merge(
        self,
        window_start: datetime,
        window_end: datetime,
        deadline: Optional[float] = None,
    ) -> OddsMergeResult:
        """
        Fetch upcoming games in [window_start, window_end) and merge their odds.

        Never raises for upstream or configuration problems; those end up in
        ``odds_error`` with empty odds.
        """
        result = OddsMergeResult()
        started = time.monotonic()

        try:
            if self.odds_service is None:
                raise ConfigError("ODDS_API_KEY not set")

            events = await self.odds_service.get_events(window_start, window_end)
            logger.info(f"Found {len(events)} games with odds between {window_start.isoformat()} and {window_end.isoformat()}")

            ordered = sorted((e for e in events if e.get("id")), key=_game_sort_key)
            if ordered:
                result.next_game_time = ordered[0].get("commence_time")

            fetched = await fetch_batched(
                ordered,
                self.batch_size,
                lambda event: self.odds_service.get_event_odds(event["id"], self.markets),
                key=lambda event: event["id"],
                delay=self.batch_delay,
                deadline=deadline,
                label="games",
            )
            metrics.record_batch_outcomes("odds", fetched.success_count, fetched.error_count)

            for failure in fetched.failures:
                logger.warning(f"Odds fetch failed for event {failure.key}: {failure.reason}")

            # Fall back to the event listing for matchup/time fields the odds
            # document omits
            by_id = {e["id"]: e for e in ordered}
            game_docs = [{**by_id[event_id], **doc} for event_id, doc in fetched.values.items()]

            result.betting_odds = merge_game_odds(game_docs)
            result.game_errors = fetched.error_count
            result.games_processed = fetched.success_count

        except ConfigError as e:
            result.odds_error = str(e)
            logger.warning(f"Skipping odds: {e}")
        except UpstreamError as e:
            result.odds_error = str(e)
            logger.error(f"Odds error: {e}")
        except Exception as e:
            result.odds_error = str(e) or type(e).__name__
            logger.exception(f"Unexpected odds error: {e}")

        if self.odds_service is not None:
            result.credits = self.odds_service.credits

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Loaded betting lines for {len(result.betting_odds)} players "
            f"from {result.games_processed} games ({elapsed_ms}ms)"
        )
        return result
