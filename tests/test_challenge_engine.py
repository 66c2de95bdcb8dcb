"""Tests for ChallengeEngine - pure challenge, progress and streak logic.

These tests verify the engine without any Home Assistant state: every call
receives its records and an explicit `today`.
"""

from datetime import UTC, date, datetime

import pytest

from custom_components.habit_calendar import const
from custom_components.habit_calendar.engines.challenge_engine import ChallengeEngine
from custom_components.habit_calendar.exceptions import InvariantViolationError
from custom_components.habit_calendar.utils.dt_utils import format_ordinal
from tests.helpers import make_challenge, make_days, make_streak

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


class TestCompletionProgress:
    """Tests for get_completion_progress."""

    def test_pending_today_is_not_progress(self) -> None:
        """Two past days count; today is pending, tomorrow is future."""
        days = make_days(TODAY, [-2, -1, 0, 1])

        progress = ChallengeEngine.get_completion_progress(days, TODAY)

        assert progress.past == 2
        assert progress.total == 4

    def test_executed_today_counts(self) -> None:
        """Executing today adds it to the past count."""
        days = make_days(TODAY, [-2, 0, 1], executed={0})

        progress = ChallengeEngine.get_completion_progress(days, TODAY)

        assert (progress.past, progress.total) == (2, 3)

    def test_missed_past_days_still_count_as_past(self) -> None:
        """Past days count whether or not they were executed."""
        days = make_days(TODAY, [-3, -2, -1], executed={-3})

        assert ChallengeEngine.get_completion_progress(days, TODAY) == (3, 3)
        assert len(ChallengeEngine.get_missed_days(days, TODAY)) == 2

    def test_empty_challenge(self) -> None:
        """A challenge without days has no progress."""
        assert ChallengeEngine.get_completion_progress([], TODAY) == (0, 0)


class TestDayQueries:
    """Tests for day lookups."""

    def test_get_day_truncates_time(self) -> None:
        """A datetime input matches the HabitDay of its calendar date."""
        days = make_days(TODAY, [-1, 0, 1])

        habit_day = ChallengeEngine.get_day(days, datetime(2026, 10, 20, 23, 59, tzinfo=UTC))

        assert habit_day is not None
        assert habit_day[const.DATA_HABIT_DAY_DATE] == "2026-10-20"

    def test_get_current_day_missing(self) -> None:
        """No HabitDay for today returns None."""
        days = make_days(TODAY, [-1, 1])

        assert ChallengeEngine.get_current_day(days, TODAY) is None

    def test_past_and_future_exclude_today(self) -> None:
        """Today is neither past nor future."""
        days = make_days(TODAY, [-1, 0, 1])

        assert len(ChallengeEngine.get_past_days(days, TODAY)) == 1
        assert len(ChallengeEngine.get_future_days(days, TODAY)) == 1


class TestOrder:
    """Tests for day order and reminder order texts."""

    def test_order_is_rank_by_date(self) -> None:
        """Order is the 1-based rank among the challenge's days."""
        days = make_days(TODAY, [1, -2, 0])
        today_day = ChallengeEngine.get_current_day(days, TODAY)

        assert ChallengeEngine.get_order(days, today_day) == 2
        assert (
            ChallengeEngine.get_notification_order_text(days, today_day)
            == "2nd day of the challenge."
        )

    def test_non_member_has_no_order(self) -> None:
        """A day of another challenge has no order and an empty text."""
        days = make_days(TODAY, [0, 1])
        other = make_days(TODAY, [5], challenge_id="other")[0]

        assert ChallengeEngine.get_order(days, other) is None
        assert ChallengeEngine.get_notification_order_text(days, other) == ""

    @pytest.mark.parametrize(
        ("number", "expected"),
        [
            (1, "1st"),
            (2, "2nd"),
            (3, "3rd"),
            (4, "4th"),
            (11, "11th"),
            (12, "12th"),
            (13, "13th"),
            (21, "21st"),
            (22, "22nd"),
            (101, "101st"),
            (111, "111th"),
        ],
    )
    def test_ordinals(self, number: int, expected: str) -> None:
        """English ordinal suffixes, including the teens."""
        assert format_ordinal(number) == expected

    def test_notification_text(self) -> None:
        """The sentence uses the ordinal of the order."""
        assert ChallengeEngine.get_notification_text(3) == "3rd day of the challenge."


class TestTransitions:
    """Tests for marking and closing."""

    def test_marking_last_day_closes_and_unmarking_reopens(self) -> None:
        """Executing the final day closes the challenge; undoing reopens it."""
        challenge = make_challenge(TODAY, -2, 0)
        today_day = make_days(TODAY, [0])[0]

        ChallengeEngine.apply_execution(challenge, today_day, True, TODAY, NOW)
        assert today_day[const.DATA_HABIT_DAY_WAS_EXECUTED] is True
        assert challenge[const.DATA_CHALLENGE_IS_CLOSED] is True

        ChallengeEngine.apply_execution(challenge, today_day, False, TODAY, NOW)
        assert today_day[const.DATA_HABIT_DAY_WAS_EXECUTED] is False
        assert challenge[const.DATA_CHALLENGE_IS_CLOSED] is False

    def test_marking_middle_day_keeps_challenge_open(self) -> None:
        """Only the last day drives the closed flag."""
        challenge = make_challenge(TODAY, -1, 2)
        today_day = make_days(TODAY, [0])[0]

        ChallengeEngine.apply_execution(challenge, today_day, True, TODAY, NOW)

        assert challenge[const.DATA_CHALLENGE_IS_CLOSED] is False
        assert today_day[const.DATA_UPDATED_AT] == NOW.isoformat()

    def test_close_removes_today_and_later(self) -> None:
        """Closing ends the range yesterday and hands back today onward."""
        challenge = make_challenge(TODAY, -2, 1)
        days = make_days(TODAY, [-2, -1, 0, 1])

        removed = ChallengeEngine.close(challenge, days, TODAY)

        assert [d[const.DATA_INTERNAL_ID] for d in removed] == ["day+0", "day+1"]
        assert challenge[const.DATA_CHALLENGE_IS_CLOSED] is True
        assert challenge[const.DATA_CHALLENGE_TO_DATE] == "2026-10-18"

    def test_close_is_idempotent(self) -> None:
        """Closing twice changes nothing the second time."""
        challenge = make_challenge(TODAY, -2, 1)
        days = make_days(TODAY, [-2, -1, 0, 1])
        removed = ChallengeEngine.close(challenge, days, TODAY)
        remaining = [d for d in days if d not in removed]
        snapshot = dict(challenge)

        assert ChallengeEngine.close(challenge, remaining, TODAY) == []
        assert challenge == snapshot

    def test_close_keeps_earlier_end(self) -> None:
        """A range that ended before yesterday keeps its end date."""
        challenge = make_challenge(TODAY, -5, -3)

        ChallengeEngine.close(challenge, make_days(TODAY, [-5, -3]), TODAY)

        assert challenge[const.DATA_CHALLENGE_TO_DATE] == "2026-10-16"

    def test_should_auto_close(self) -> None:
        """Open challenges ending before today are due for closing."""
        assert ChallengeEngine.should_auto_close(make_challenge(TODAY, -3, -1), TODAY)
        assert not ChallengeEngine.should_auto_close(make_challenge(TODAY, -3, 0), TODAY)
        assert not ChallengeEngine.should_auto_close(
            make_challenge(TODAY, -3, -1, is_closed=True), TODAY
        )


class TestSelectCurrentChallenge:
    """Tests for select_current_challenge."""

    def test_open_containing_preferred_over_closed(self) -> None:
        """An open challenge containing today wins over a closed one."""
        closed = make_challenge(TODAY, -3, 0, is_closed=True, challenge_id="closed")
        open_ = make_challenge(TODAY, 0, 3, challenge_id="open")

        current = ChallengeEngine.select_current_challenge([closed, open_], TODAY)

        assert current[const.DATA_INTERNAL_ID] == "open"

    def test_closed_containing_returned_alone(self) -> None:
        """A closed challenge containing today is still current."""
        closed = make_challenge(TODAY, -3, 0, is_closed=True)

        assert ChallengeEngine.select_current_challenge([closed], TODAY) is closed

    def test_open_adjacent_ending_yesterday(self) -> None:
        """An open challenge that ended yesterday stays current until closed."""
        ended = make_challenge(TODAY, -4, -1)

        assert ChallengeEngine.select_current_challenge([ended], TODAY) is ended

    def test_open_adjacent_starting_tomorrow(self) -> None:
        """An open challenge starting tomorrow is current."""
        upcoming = make_challenge(TODAY, 1, 4)

        assert ChallengeEngine.select_current_challenge([upcoming], TODAY) is upcoming

    def test_closed_adjacent_is_not_current(self) -> None:
        """Adjacency only applies to open challenges."""
        ended = make_challenge(TODAY, -4, -1, is_closed=True)

        assert ChallengeEngine.select_current_challenge([ended], TODAY) is None

    def test_distant_challenges_are_not_current(self) -> None:
        """Nothing near today means no current challenge."""
        far = make_challenge(TODAY, 5, 9)

        assert ChallengeEngine.select_current_challenge([far], TODAY) is None

    def test_two_open_candidates_raise(self) -> None:
        """Overlapping open challenges break an invariant."""
        first = make_challenge(TODAY, -1, 1, challenge_id="first")
        second = make_challenge(TODAY, 0, 2, challenge_id="second")

        with pytest.raises(InvariantViolationError):
            ChallengeEngine.select_current_challenge([first, second], TODAY)


class TestStreaks:
    """Tests for offensive (streak) helpers."""

    def test_current_streak_ends_today_or_yesterday(self) -> None:
        """Only streaks ending today or yesterday are current."""
        assert ChallengeEngine.is_current_streak(make_streak(TODAY, -2, 0), TODAY)
        assert ChallengeEngine.is_current_streak(make_streak(TODAY, -2, -1), TODAY)
        assert not ChallengeEngine.is_current_streak(make_streak(TODAY, -5, -2), TODAY)

    def test_no_offensive_without_days(self) -> None:
        """A challenge without days has no offensive."""
        streaks = [make_streak(TODAY, -1, 0)]

        assert ChallengeEngine.get_current_offensive(streaks, [], TODAY) is None

    def test_offensive_picks_current_streak(self) -> None:
        """Broken streaks are ignored."""
        broken = make_streak(TODAY, -6, -4, streak_id="broken")
        running = make_streak(TODAY, -2, -1, streak_id="running")
        days = make_days(TODAY, [-6, -5, -4, -3, -2, -1, 0])

        offensive = ChallengeEngine.get_current_offensive([broken, running], days, TODAY)

        assert offensive is running
        assert ChallengeEngine.streak_length(offensive) == 2

    def test_extend_streak(self) -> None:
        """Extending moves the end to today."""
        streak = make_streak(TODAY, -2, -1)

        ChallengeEngine.extend_streak(streak, TODAY, NOW)

        assert streak[const.DATA_STREAK_TO_DATE] == "2026-10-19"
        assert ChallengeEngine.streak_length(streak) == 3

    def test_retract_streak_started_today(self) -> None:
        """A streak that only covers today should be removed."""
        streak = make_streak(TODAY, 0, 0)

        assert ChallengeEngine.retract_streak(streak, TODAY, NOW) is True

    def test_retract_longer_streak(self) -> None:
        """A longer streak falls back to ending yesterday."""
        streak = make_streak(TODAY, -2, 0)

        assert ChallengeEngine.retract_streak(streak, TODAY, NOW) is False
        assert streak[const.DATA_STREAK_TO_DATE] == "2026-10-18"

    def test_retract_ignores_streak_not_ending_today(self) -> None:
        """Streaks that did not include today are left alone."""
        streak = make_streak(TODAY, -2, -1)

        assert ChallengeEngine.retract_streak(streak, TODAY, NOW) is False
        assert streak[const.DATA_STREAK_TO_DATE] == "2026-10-18"
