"""Player name normalization and lookup for joining odds to stats records.

The odds feed and the NHL stats API share no player key, so betting lines are
joined to stats records by name. Handles the variations seen between the two:
- Accents: "Tim Stützle" → "tim stutzle"
- Punctuation: "T.J. Oshie" → "tj oshie", "Ryan O'Reilly" → "ryan oreilly"
- Suffixes: "Martin St. Louis Jr." → "martin st louis"
- Case and extra whitespace
"""
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process

from nhl_tracker.core.logging import get_logger

logger = get_logger(__name__)

SUFFIXES = {'jr', 'sr', 'ii', 'iii', 'iv', 'v'}

# Name fields on NHL stats API summary records
NAME_FIELDS = ("skaterFullName", "goalieFullName", "fullName")


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a player name for comparison.

    Examples:
        >>> normalize_name("Tim Stützle")
        'tim stutzle'
        >>> normalize_name("T.J. Oshie")
        'tj oshie'
        >>> normalize_name("  Ryan   O'Reilly ")
        'ryan oreilly'
    """
    if not name:
        return ""

    parts = name.split()
    if len(parts) > 1 and parts[-1].lower().replace('.', '') in SUFFIXES:
        parts = parts[:-1]
    name = ' '.join(parts)

    # NFD splits accented letters into base + combining mark; drop the marks
    decomposed = unicodedata.normalize('NFD', name)
    name = ''.join(c for c in decomposed if unicodedata.category(c) != 'Mn')

    name = name.lower()
    name = re.sub(r"[^\w\s-]", '', name)
    name = name.replace('-', ' ')

    return ' '.join(name.split())


def display_name(record: Dict[str, Any]) -> Optional[str]:
    """Full display name of a skater or goalie stats record."""
    for name_field in NAME_FIELDS:
        value = record.get(name_field)
        if value:
            return value
    return None


@dataclass(frozen=True)
class NameMatch:
    """A resolved odds name."""
    query: str
    name: str
    player_id: Any
    score: float


@dataclass
class PlayerNameIndex:
    """
    Lookup from normalized player names to stats records.

    A normalized name shared by two different players is ambiguous and is
    never resolved, so an odds line cannot silently attach to the wrong
    player.
    """
    fuzzy_threshold: float = 90.0
    _entries: Dict[str, Tuple[str, Any]] = field(default_factory=dict)
    _ambiguous: set = field(default_factory=set)

    @classmethod
    def build(cls, records: Iterable[Dict[str, Any]], fuzzy_threshold: float = 90.0) -> "PlayerNameIndex":
        index = cls(fuzzy_threshold=fuzzy_threshold)
        for record in records:
            name = display_name(record)
            if name:
                index.add(name, record.get("playerId"))
        return index

    def add(self, name: str, player_id: Any):
        key = normalize_name(name)
        if not key or key in self._ambiguous:
            return
        existing = self._entries.get(key)
        if existing and existing[1] != player_id:
            logger.debug(f"Ambiguous player name '{name}' ({existing[1]} vs {player_id})")
            del self._entries[key]
            self._ambiguous.add(key)
            return
        self._entries[key] = (name, player_id)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, name: str) -> Optional[NameMatch]:
        """
        Resolve an odds-feed name to a stats record.

        Exact normalized match first, then rapidfuzz WRatio at or above
        fuzzy_threshold. Ambiguous names never resolve.
        """
        key = normalize_name(name)
        if not key or key in self._ambiguous:
            return None

        if key in self._entries:
            stats_name, player_id = self._entries[key]
            return NameMatch(query=name, name=stats_name, player_id=player_id, score=100.0)

        if not self._entries:
            return None

        best = process.extractOne(
            key,
            self._entries.keys(),
            scorer=fuzz.WRatio,
            score_cutoff=self.fuzzy_threshold,
        )
        if best is None:
            return None

        matched_key, score, _ = best
        stats_name, player_id = self._entries[matched_key]
        logger.debug(f"Fuzzy matched odds name '{name}' to '{stats_name}' ({score:.1f})")
        return NameMatch(query=name, name=stats_name, player_id=player_id, score=score)


def rekey_by_stats_name(
    betting_odds: Dict[str, Dict[str, Any]],
    index: PlayerNameIndex,
) -> Tuple[Dict[str, Dict[str, Any]], List[str]]:
    """
    Re-key name-keyed betting lines to the stats API display names.

    When two odds names resolve to the same player their categories are
    combined, keeping the first line seen per category.

    Returns:
        Tuple of (re-keyed odds, sorted list of unmatched odds names).
        Unmatched players keep their odds-feed spelling.
    """
    rekeyed: Dict[str, Dict[str, Any]] = {}
    unmatched: List[str] = []

    for odds_name, lines in betting_odds.items():
        match = index.resolve(odds_name)
        if match is None:
            unmatched.append(odds_name)
            target = rekeyed.setdefault(odds_name, {})
        else:
            target = rekeyed.setdefault(match.name, {})
        for category, line in lines.items():
            target.setdefault(category, line)

    if unmatched:
        logger.info(f"{len(unmatched)} odds players did not match a stats record")

    return rekeyed, sorted(unmatched)
