"""
Timezone utilities for the NHL tracker.

All timestamps in the snapshot are UTC ISO 8601 strings. The upcoming-games
window for betting odds is computed against the league's local day
(America/New_York by default), since "today's games" means the slate as the
schedule lists it rather than the UTC calendar day.
"""
from datetime import datetime, timezone, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

UTC = timezone.utc


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso_z(dt: datetime) -> str:
    """
    Format an aware datetime as ISO 8601 UTC with millisecond precision and 'Z'.

    Examples:
        >>> to_iso_z(datetime(2025, 1, 15, 17, 0, tzinfo=UTC))
        '2025-01-15T17:00:00.000Z'
    """
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_odds_api_timestamp(dt: datetime) -> str:
    """Format for the Odds API commenceTimeFrom/To params (no fractional seconds)."""
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_odds_window(
    now: datetime,
    anchor: str = "start_of_day",
    hours: int = 24,
    tz_name: str = "America/New_York",
) -> Tuple[datetime, datetime]:
    """
    Compute the [start, end) UTC window of games to fetch odds for.

    Args:
        now: Current time (aware)
        anchor: "start_of_day" to start at local midnight, "now" to start now
        hours: Window length in hours (local wall-clock hours for "start_of_day")
        tz_name: IANA timezone used to find local midnight

    Returns:
        Tuple of (start_utc, end_utc)

    Examples:
        >>> start, end = get_odds_window(datetime(2025, 1, 15, 17, 0, tzinfo=UTC))
        >>> start.isoformat(), end.isoformat()
        ('2025-01-15T05:00:00+00:00', '2025-01-16T05:00:00+00:00')
    """
    if hours <= 0:
        raise ValueError(f"Odds window must be positive, got {hours} hours")

    if anchor == "now":
        start = now.astimezone(UTC)
        return start, start + timedelta(hours=hours)

    if anchor != "start_of_day":
        raise ValueError(f"Unknown odds window anchor: {anchor}")

    # Wall-clock arithmetic in the local zone, so a 24 hour window ends at the
    # next local midnight even across a DST change
    local = now.astimezone(ZoneInfo(tz_name))
    local_midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    local_end = local_midnight + timedelta(hours=hours)
    return local_midnight.astimezone(UTC), local_end.astimezone(UTC)
