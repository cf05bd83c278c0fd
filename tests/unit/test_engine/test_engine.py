"""Unit tests for the check-in engine."""
from datetime import datetime, timedelta, timezone

import pytest

from app.engine import (
    CheckInConfig,
    CheckInRejection,
    CheckInResult,
    RejectionKind,
    UserCheckInState,
    build_message,
    compute_bonuses,
    process_check_in,
)
from tests.conftest import denver


def no_check_in(user_id, day):
    return None


def state(streak=0, last=None, longest=None, balance=0):
    return UserCheckInState(
        current_streak=streak,
        longest_streak=streak if longest is None else longest,
        points_balance=balance,
        total_points_earned=balance,
        last_check_in_time=last,
    )


@pytest.fixture
def config():
    return CheckInConfig()


@pytest.mark.unit
class TestProcessCheckInScenarios:
    """Reference scenarios for the default configuration."""

    def test_first_early_check_in(self, config):
        result = process_check_in(1, denver(2025, 6, 2, 7, 0), state(), config, no_check_in)

        assert isinstance(result, CheckInResult)
        assert result.classification == "early"
        assert result.base_points == 2
        assert result.streak_day == 1
        assert result.bonus_points == 0
        assert result.total_points == 2

    def test_seventh_day_earns_perfect_week(self, config):
        prior = state(streak=6, last=denver(2025, 6, 1, 7, 30))
        result = process_check_in(1, denver(2025, 6, 2, 7, 50), prior, config, no_check_in)

        assert result.classification == "ontime"
        assert result.base_points == 1
        assert result.streak_day == 7
        assert result.bonus_points == 5
        assert result.bonuses.perfect_week is True
        assert result.total_points == 6

    def test_tenth_day_earns_streak_bonus(self, config):
        prior = state(streak=9, last=denver(2025, 6, 1, 7, 30))
        result = process_check_in(1, denver(2025, 6, 2, 8, 30), prior, config, no_check_in)

        assert result.classification == "late"
        assert result.base_points == 0
        assert result.streak_day == 10
        assert result.bonus_points == 10
        assert result.bonuses.streak_bonus is True
        assert result.total_points == 10

    def test_before_window_is_rejected(self, config):
        result = process_check_in(1, denver(2025, 6, 2, 5, 30), state(), config, no_check_in)

        assert isinstance(result, CheckInRejection)
        assert result.kind == RejectionKind.OUTSIDE_WINDOW
        assert "06:00" in result.message and "09:00" in result.message
        assert result.local_time == "05:30"

    def test_second_check_in_same_day_is_rejected(self, config):
        stored = {}

        def lookup(user_id, day):
            return stored.get((user_id, day))

        first = process_check_in(1, denver(2025, 6, 2, 7, 0), state(), config, lookup)
        assert isinstance(first, CheckInResult)
        stored[(1, first.local_date)] = first

        second = process_check_in(1, denver(2025, 6, 2, 8, 45), state(1, first.check_in_time), config, lookup)
        assert isinstance(second, CheckInRejection)
        assert second.kind == RejectionKind.ALREADY_CHECKED_IN

    def test_gap_resets_streak(self, config):
        prior = state(streak=4, last=denver(2025, 5, 30, 7, 30))
        result = process_check_in(1, denver(2025, 6, 2, 7, 50), prior, config, no_check_in)

        assert result.streak_day == 1
        assert result.classification == "ontime"
        assert result.base_points == 1
        assert result.bonus_points == 0


@pytest.mark.unit
class TestProcessCheckInOrdering:

    def test_already_checked_in_wins_over_outside_window(self, config):
        """A repeat attempt after the window closes still reports the duplicate."""
        result = process_check_in(1, denver(2025, 6, 2, 10, 0), state(), config, lambda u, d: object())
        assert result.kind == RejectionKind.ALREADY_CHECKED_IN

    def test_duplicate_ignores_config_changes(self):
        """Once today's check-in exists, no configuration makes a second one acceptable."""
        wide_open = CheckInConfig(window_start="00:00", window_end="23:59", early_cutoff="23:00",
                                  on_time_cutoff="23:30")
        result = process_check_in(1, denver(2025, 6, 2, 12, 0), state(), wide_open, lambda u, d: object())
        assert result.kind == RejectionKind.ALREADY_CHECKED_IN

    def test_lookup_receives_local_day(self, config):
        """18:00 in Denver on 1 June is already 2 June in UTC; the lookup must see 1 June."""
        seen = []

        def lookup(user_id, day):
            seen.append((user_id, day))
            return None

        process_check_in(42, denver(2025, 6, 1, 18, 0), state(), config, lookup)
        assert seen == [(42, denver(2025, 6, 1, 0, 0).date())]

    def test_naive_now_is_treated_as_utc(self, config):
        # 13:00 UTC == 07:00 MDT
        result = process_check_in(1, datetime(2025, 6, 2, 13, 0), state(), config, no_check_in)
        assert result.classification == "early"
        assert result.check_in_time.tzinfo is not None
        assert result.check_in_time == datetime(2025, 6, 2, 13, 0, tzinfo=timezone.utc)

    def test_does_not_mutate_prior_state(self, config):
        prior = state(streak=3, last=denver(2025, 6, 1, 7, 0), balance=10)
        process_check_in(1, denver(2025, 6, 2, 7, 0), prior, config, no_check_in)
        assert prior.current_streak == 3
        assert prior.points_balance == 10


@pytest.mark.unit
class TestLongestStreak:

    @pytest.mark.parametrize("streak,longest,last_offset_days", [
        (0, 0, None),
        (3, 3, 1),
        (3, 12, 1),
        (8, 8, 4),
        (20, 25, 2),
    ])
    def test_longest_streak_never_decreases(self, config, streak, longest, last_offset_days):
        now = denver(2025, 6, 2, 7, 0)
        last = now - timedelta(days=last_offset_days) if last_offset_days else None
        result = process_check_in(1, now, state(streak, last, longest), config, no_check_in)

        assert result.longest_streak >= longest
        assert result.longest_streak >= result.streak_day


@pytest.mark.unit
class TestMessages:

    def test_early_message(self, config):
        message = build_message("early", 2, compute_bonuses(1, config), 1)
        assert message == "Check-in successful! You earned 2 points for checking in early!"

    def test_on_time_single_point(self, config):
        message = build_message("ontime", 1, compute_bonuses(2, config), 2)
        assert message == "Check-in successful! You earned 1 point!"

    def test_bonus_message_mentions_both_bonuses(self, config):
        message = build_message("ontime", 1, compute_bonuses(70, config), 70)
        assert "plus 15 bonus points" in message
        assert "a perfect week" in message
        assert "70-day streak" in message

    def test_late_message_is_encouraging(self, config):
        message = build_message("late", 0, compute_bonuses(1, config), 1)
        assert message.endswith("You made it, keep improving.")
