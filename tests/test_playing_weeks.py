"""
Unit tests for the calendar builder.
"""
import datetime
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.errors import InvalidInputError
from league.models import VacationPeriod
from league.playing_weeks import (
    build_playing_weeks, convert_to_playing_weeks, is_in_vacation, monday_of,
    validate_vacation_conflicts, weeks_needed,
)


def d(text):
    return datetime.date.fromisoformat(text)


class TestWeeksNeeded:
    """Tests for the minimum week count."""

    def test_slot_bound(self):
        """28 matches at 7 slots need 4 weeks by slots alone."""
        assert weeks_needed(28, 7) == 4
        assert weeks_needed(29, 7) == 5

    def test_matchday_bound(self):
        """A season needs at least one week per matchday."""
        assert weeks_needed(28, 7, matchdays=7) == 7

    def test_half_the_teams_per_week(self):
        """5 teams fill at most 2 slots a week however many slots there are."""
        assert weeks_needed(10, 7, max_per_week=2) == 5
        assert weeks_needed(10, 7, 5, 2) == 5

    def test_odd_league_bound(self):
        """17 teams: 136 matches at 7 a week need 20 weeks, more than the 17 matchdays."""
        assert weeks_needed(136, 7, 17, 8) == 20
        assert weeks_needed(136, 7, 17) == 20
        assert weeks_needed(136, 10, 17, 8) == 17

    def test_zero_slots_rejected(self):
        with pytest.raises(InvalidInputError):
            weeks_needed(10, 0)


class TestBuildPlayingWeeks:
    """Tests for build_playing_weeks."""

    def test_plain_range(self, season_start):
        """Every Monday of the range is a playing week."""
        weeks, message = build_playing_weeks(season_start, d("2025-09-29"))
        assert weeks == [d("2025-09-01"), d("2025-09-08"), d("2025-09-15"),
                         d("2025-09-22"), d("2025-09-29")]
        assert message is None

    def test_weeks_are_mondays(self):
        """A mid-week start maps to the Monday of that week."""
        weeks, _ = build_playing_weeks(d("2025-09-03"), d("2025-09-20"))
        assert weeks[0] == d("2025-09-01")
        assert all(week.weekday() == 0 for week in weeks)

    def test_vacation_weeks_skipped(self, christmas):
        """Mondays inside an active vacation are not playing weeks."""
        weeks, _ = build_playing_weeks(d("2025-12-15"), d("2026-01-12"), [christmas])
        assert weeks == [d("2025-12-15"), d("2026-01-05"), d("2026-01-12")]

    def test_vacations_as_dicts(self):
        """Settings providers may hand over plain dicts."""
        vacations = [{'name': 'Autumn', 'start_date': '2025-09-08', 'end_date': '2025-09-14'}]
        weeks, _ = build_playing_weeks(d("2025-09-01"), d("2025-09-15"), vacations)
        assert weeks == [d("2025-09-01"), d("2025-09-15")]

    def test_inactive_vacation_ignored(self):
        vacation = VacationPeriod("Autumn", "2025-09-08", "2025-09-14", is_active=False)
        weeks, _ = build_playing_weeks(d("2025-09-01"), d("2025-09-15"), [vacation])
        assert len(weeks) == 3

    def test_excluded_dates_remove_whole_week(self):
        """A committed Wednesday match blocks its entire week."""
        weeks, _ = build_playing_weeks(d("2025-09-01"), d("2025-09-15"), excluded_dates=[d("2025-09-10")])
        assert weeks == [d("2025-09-01"), d("2025-09-15")]

    def test_range_extended_past_vacation(self, season_start):
        """Five weeks needed, two blocked: the range grows by two weeks."""
        vacation = VacationPeriod("Blackout", "2025-09-08", "2025-09-21")
        weeks, message = build_playing_weeks(season_start, d("2025-09-29"), [vacation], weeks_needed=5)
        assert weeks == [d("2025-09-01"), d("2025-09-22"), d("2025-09-29"),
                         d("2025-10-06"), d("2025-10-13")]
        assert message is None

    def test_extension_keeps_skipping_vacations(self, christmas):
        """Extension weeks landing in a vacation are skipped as well."""
        weeks, message = build_playing_weeks(d("2025-12-15"), d("2025-12-21"), [christmas], weeks_needed=3)
        assert weeks == [d("2025-12-15"), d("2026-01-05"), d("2026-01-12")]
        assert message is None

    def test_shortfall_reported(self):
        """When the extension cannot find enough weeks the shortfall is described."""
        vacation = VacationPeriod("Closed", "2025-09-15", "2026-12-31")
        weeks, message = build_playing_weeks(d("2025-09-01"), d("2025-09-08"), [vacation], weeks_needed=4)
        assert weeks == [d("2025-09-01"), d("2025-09-08")]
        assert "Only 2 playing weeks found (4 needed)" in message

    def test_extension_capped_at_twice_the_weeks_needed(self):
        """The calendar never spans more than 2 * weeks_needed weeks from the start."""
        vacation = VacationPeriod("Closed", "2025-09-08", "2025-10-12")
        weeks, message = build_playing_weeks(d("2025-09-01"), d("2025-09-29"), [vacation], weeks_needed=3)
        assert weeks == [d("2025-09-01")]
        assert "Only 1 playing weeks found (3 needed)" in message

    def test_single_day_range_extended(self):
        """Start and end on the same day still yields the weeks needed."""
        weeks, message = build_playing_weeks(d("2025-09-03"), d("2025-09-03"), weeks_needed=5)
        assert weeks == [d("2025-09-01") + datetime.timedelta(weeks=i) for i in range(5)]
        assert message is None

    def test_no_weeks_at_all(self):
        """A range fully inside a vacation yields no weeks and a message."""
        vacation = VacationPeriod("Closed", "2025-09-01", "2026-12-31")
        weeks, message = build_playing_weeks(d("2025-09-01"), d("2025-09-08"), [vacation], weeks_needed=3)
        assert weeks == []
        assert message.startswith("No playing weeks available")

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidInputError):
            build_playing_weeks(d("2025-09-08"), d("2025-09-01"))

    def test_weeks_strictly_increasing(self, christmas):
        weeks, _ = build_playing_weeks(d("2025-09-01"), d("2026-05-31"), [christmas], weeks_needed=30)
        assert weeks == sorted(set(weeks))


class TestHelpers:
    """Tests for the smaller calendar helpers."""

    def test_monday_of(self):
        assert monday_of("2025-09-07") == d("2025-09-01")
        assert monday_of(d("2025-09-01")) == d("2025-09-01")

    def test_is_in_vacation(self, christmas):
        assert is_in_vacation(d("2025-12-29"), [christmas])
        assert not is_in_vacation(d("2026-01-05"), [christmas])

    def test_convert_to_playing_weeks(self):
        """Selected dates map to their Monday, order preserved."""
        assert convert_to_playing_weeks(["2026-02-05", "2026-02-09"]) == [d("2026-02-02"), d("2026-02-09")]

    def test_validate_vacation_conflicts(self, christmas):
        """A selected date inside a vacation names that vacation."""
        validate_vacation_conflicts(["2026-01-05"], [christmas])
        with pytest.raises(InvalidInputError, match="Christmas"):
            validate_vacation_conflicts(["2026-01-05", "2025-12-24"], [christmas])
