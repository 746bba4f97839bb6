"""Unit tests for timestamp formatting and the odds window."""
from datetime import datetime, timezone

import pytest

from nhl_tracker.utils.timezone import get_odds_window, to_iso_z, to_odds_api_timestamp

UTC = timezone.utc


class TestOddsWindow:
    """Test suite for get_odds_window."""

    def test_today_only_in_league_timezone(self):
        """Should start at New York midnight and run 24 hours."""
        start, end = get_odds_window(datetime(2025, 1, 15, 17, 0, tzinfo=UTC))

        assert start == datetime(2025, 1, 15, 5, 0, tzinfo=UTC)
        assert end == datetime(2025, 1, 16, 5, 0, tzinfo=UTC)

    def test_early_utc_morning_belongs_to_previous_local_day(self):
        """Should use the local calendar day, not the UTC one."""
        start, _ = get_odds_window(datetime(2025, 1, 16, 2, 0, tzinfo=UTC))

        assert start == datetime(2025, 1, 15, 5, 0, tzinfo=UTC)

    def test_daylight_saving_offset(self):
        """Should honor EDT in summer."""
        start, _ = get_odds_window(datetime(2025, 7, 1, 17, 0, tzinfo=UTC))

        assert start == datetime(2025, 7, 1, 4, 0, tzinfo=UTC)

    def test_spring_forward_day_is_23_hours(self):
        """Should end at the next local midnight on the day clocks go forward."""
        start, end = get_odds_window(datetime(2025, 3, 9, 17, 0, tzinfo=UTC))

        assert start == datetime(2025, 3, 9, 5, 0, tzinfo=UTC)
        assert end == datetime(2025, 3, 10, 4, 0, tzinfo=UTC)

    def test_fall_back_day_is_25_hours(self):
        """Should end at the next local midnight on the day clocks go back."""
        start, end = get_odds_window(datetime(2025, 11, 2, 17, 0, tzinfo=UTC))

        assert start == datetime(2025, 11, 2, 4, 0, tzinfo=UTC)
        assert end == datetime(2025, 11, 3, 5, 0, tzinfo=UTC)

    def test_rolling_window_from_now(self):
        now = datetime(2025, 1, 15, 17, 30, tzinfo=UTC)
        start, end = get_odds_window(now, anchor="now", hours=48)

        assert start == now
        assert end == datetime(2025, 1, 17, 17, 30, tzinfo=UTC)

    def test_invalid_arguments(self):
        now = datetime(2025, 1, 15, 17, 0, tzinfo=UTC)
        with pytest.raises(ValueError):
            get_odds_window(now, hours=0)
        with pytest.raises(ValueError):
            get_odds_window(now, anchor="tomorrow")


class TestFormatting:

    def test_iso_z_millisecond_precision(self):
        assert to_iso_z(datetime(2025, 1, 15, 17, 0, 1, 123456, tzinfo=UTC)) == "2025-01-15T17:00:01.123Z"

    def test_odds_api_timestamp(self):
        assert to_odds_api_timestamp(datetime(2025, 1, 15, 17, 0, 1, 999, tzinfo=UTC)) == "2025-01-15T17:00:01Z"

