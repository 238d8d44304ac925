"""Tests for consecutive-day streak calculation."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from chorequest.engine.streaks import calculate_streaks

UTC = ZoneInfo('UTC')
NOW = datetime(2024, 6, 15, 18, 0, 0)


def days_ago(*offsets, hour=9):
    return [NOW.replace(hour=hour) - timedelta(days=d) for d in offsets]


class TestCalculateStreaks:
    """Tests for calculate_streaks."""

    def test_no_completions(self):
        result = calculate_streaks([], NOW, UTC)
        assert (result.current, result.longest) == (0, 0)

    def test_gap_breaks_current_run(self):
        """Completions today, yesterday and three days ago."""
        result = calculate_streaks(days_ago(0, 1, 3), NOW, UTC)
        assert (result.current, result.longest) == (2, 2)

    def test_run_ending_yesterday_is_current(self):
        result = calculate_streaks(days_ago(1, 2, 3), NOW, UTC)
        assert (result.current, result.longest) == (3, 3)

    def test_lapsed_run_is_not_current(self):
        result = calculate_streaks(days_ago(2, 3, 4, 5), NOW, UTC)
        assert result.current == 0
        assert result.longest == 4

    def test_longest_run_in_the_past(self):
        result = calculate_streaks(days_ago(0, 5, 6, 7, 8), NOW, UTC)
        assert (result.current, result.longest) == (1, 4)

    def test_multiple_completions_same_day_count_once(self):
        timestamps = days_ago(0, 0, 0) + days_ago(1, hour=20)
        result = calculate_streaks(timestamps, NOW, UTC)
        assert (result.current, result.longest) == (2, 2)

    def test_input_order_does_not_matter(self):
        timestamps = days_ago(3, 0, 1)
        assert calculate_streaks(timestamps, NOW, UTC) == calculate_streaks(sorted(timestamps), NOW, UTC)

    def test_days_follow_household_timezone(self):
        """23:30 UTC is already the next day in Auckland."""
        tz = ZoneInfo('Pacific/Auckland')
        now = datetime(2024, 6, 16, 0, 30, tzinfo=timezone.utc)
        timestamps = [
            datetime(2024, 6, 15, 23, 30),  # June 16 local
            datetime(2024, 6, 15, 1, 0),    # June 15 local
        ]
        result = calculate_streaks(timestamps, now, tz)
        assert (result.current, result.longest) == (2, 2)

        # In UTC both completions fall on June 15, a single day
        result = calculate_streaks(timestamps, now, UTC)
        assert (result.current, result.longest) == (1, 1)
