"""Challenge Engine - Pure logic for challenge days, progress and streaks.

This engine provides stateless, pure Python functions for:
- Day queries (current, past, future, executed, missed)
- Completion progress and day ordering
- Reminder order texts ("3rd day of the challenge.")
- Execution marking, closing transitions and streak ("offensive") updates
- Selecting the current challenge among a habit's challenges

ARCHITECTURE: This is a pure logic engine with NO Home Assistant state access.
All functions are static methods that operate on passed-in records and an
explicit `today`, so results never depend on the wall clock.
State management and persistence belong in ChallengeManager.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..exceptions import InvariantViolationError
from ..type_defs import CompletionProgress
from ..utils.dt_utils import dt_add_days, dt_days_between, dt_to_date, format_ordinal

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import ChallengeData, HabitDayData, StreakData


def _day_date(habit_day: HabitDayData) -> date:
    """Return the calendar date of a HabitDay record."""
    return date.fromisoformat(habit_day[const.DATA_HABIT_DAY_DATE])


class ChallengeEngine:
    """Pure logic engine for challenges.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.
    """

    # =========================================================================
    # RANGE QUERIES
    # =========================================================================

    @staticmethod
    def date_range(challenge: ChallengeData) -> tuple[date, date]:
        """Return the challenge's (from_date, to_date) as dates."""
        return (
            date.fromisoformat(challenge[const.DATA_CHALLENGE_FROM_DATE]),
            date.fromisoformat(challenge[const.DATA_CHALLENGE_TO_DATE]),
        )

    @staticmethod
    def contains(challenge: ChallengeData, day: date) -> bool:
        """Check if a calendar date falls inside the challenge's range."""
        from_date, to_date = ChallengeEngine.date_range(challenge)
        return from_date <= day <= to_date

    @staticmethod
    def is_adjacent(challenge: ChallengeData, today: date) -> bool:
        """Check if the range ends yesterday or starts tomorrow."""
        from_date, to_date = ChallengeEngine.date_range(challenge)
        return to_date == dt_add_days(today, -1) or from_date == dt_add_days(today, 1)

    @staticmethod
    def ranges_overlap(first: ChallengeData, second: ChallengeData) -> bool:
        """Check if two challenge ranges share at least one date."""
        first_from, first_to = ChallengeEngine.date_range(first)
        second_from, second_to = ChallengeEngine.date_range(second)
        return first_from <= second_to and second_from <= first_to

    @staticmethod
    def select_current_challenge(
        challenges: Iterable[ChallengeData], today: date
    ) -> ChallengeData | None:
        """Pick the current challenge of a habit.

        Challenges containing today win, the open one preferred over closed
        ones. Without such a challenge, an open challenge adjacent to today
        (ending yesterday or starting tomorrow) is returned.

        Raises:
            InvariantViolationError: If two open challenges compete. Open
                challenges are never allowed to overlap, so there is no
                meaningful tie-break.
        """
        challenges = list(challenges)

        containing = [c for c in challenges if ChallengeEngine.contains(c, today)]
        candidates = containing or [
            c
            for c in challenges
            if not c[const.DATA_CHALLENGE_IS_CLOSED]
            and ChallengeEngine.is_adjacent(c, today)
        ]
        if not candidates:
            return None

        open_candidates = [
            c for c in candidates if not c[const.DATA_CHALLENGE_IS_CLOSED]
        ]
        if len(open_candidates) > 1:
            raise InvariantViolationError(
                "Open challenges overlap: "
                + ", ".join(c[const.DATA_INTERNAL_ID] for c in open_candidates)
            )
        if open_candidates:
            return open_candidates[0]
        return candidates[0]

    # =========================================================================
    # DAY QUERIES
    # =========================================================================

    @staticmethod
    def sorted_days(days: Iterable[HabitDayData]) -> list[HabitDayData]:
        """Return the days ordered ascending by date."""
        return sorted(days, key=_day_date)

    @staticmethod
    def get_day(
        days: Iterable[HabitDayData], day: str | date | datetime
    ) -> HabitDayData | None:
        """Return the HabitDay whose date equals the truncated input date."""
        target = dt_to_date(day)
        for habit_day in days:
            if _day_date(habit_day) == target:
                return habit_day
        return None

    @staticmethod
    def get_current_day(
        days: Iterable[HabitDayData], today: date
    ) -> HabitDayData | None:
        """Return today's HabitDay, if the challenge tracks today."""
        return ChallengeEngine.get_day(days, today)

    @staticmethod
    def get_past_days(days: Iterable[HabitDayData], today: date) -> list[HabitDayData]:
        """Return the days strictly before today."""
        return [d for d in days if _day_date(d) < today]

    @staticmethod
    def get_future_days(
        days: Iterable[HabitDayData], today: date
    ) -> list[HabitDayData]:
        """Return the days strictly after today."""
        return [d for d in days if _day_date(d) > today]

    @staticmethod
    def get_executed_days(days: Iterable[HabitDayData]) -> list[HabitDayData]:
        """Return the days marked as executed."""
        return [d for d in days if d[const.DATA_HABIT_DAY_WAS_EXECUTED]]

    @staticmethod
    def get_missed_days(
        days: Iterable[HabitDayData], today: date
    ) -> list[HabitDayData]:
        """Return the past days that were not executed."""
        return [
            d
            for d in ChallengeEngine.get_past_days(days, today)
            if not d[const.DATA_HABIT_DAY_WAS_EXECUTED]
        ]

    # =========================================================================
    # PROGRESS AND ORDER
    # =========================================================================

    @staticmethod
    def get_completion_progress(
        days: Iterable[HabitDayData], today: date
    ) -> CompletionProgress:
        """Compute the challenge's (past, total) progress.

        Today counts toward `past` only once executed; a pending today is not
        progress yet and never a missed day either.
        """
        days = list(days)
        past = len(ChallengeEngine.get_past_days(days, today))

        current_day = ChallengeEngine.get_current_day(days, today)
        if current_day is not None and current_day[const.DATA_HABIT_DAY_WAS_EXECUTED]:
            past += 1

        return CompletionProgress(past=past, total=len(days))

    @staticmethod
    def get_order(days: Iterable[HabitDayData], habit_day: HabitDayData) -> int | None:
        """Return the 1-based rank of a day inside the challenge, by date.

        Returns:
            The order, or None when the day does not belong to the challenge.
        """
        habit_day_id = habit_day[const.DATA_INTERNAL_ID]
        for index, day in enumerate(ChallengeEngine.sorted_days(days)):
            if day[const.DATA_INTERNAL_ID] == habit_day_id:
                return index + 1
        return None

    @staticmethod
    def get_notification_text(order: int) -> str:
        """Return the reminder sentence for a day order, e.g. "2nd day of the challenge."."""
        return const.ORDER_TEXT_FMT.format(ordinal=format_ordinal(order))

    @staticmethod
    def get_notification_order_text(
        days: Iterable[HabitDayData], habit_day: HabitDayData
    ) -> str:
        """Return the reminder sentence for a day, or "" for non-members."""
        order = ChallengeEngine.get_order(days, habit_day)
        if order is None:
            return ""
        return ChallengeEngine.get_notification_text(order)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    @staticmethod
    def apply_execution(
        challenge: ChallengeData,
        habit_day: HabitDayData,
        executed: bool,
        today: date,
        now: datetime,
    ) -> None:
        """Mark today's HabitDay and open/close the challenge accordingly.

        When today is the challenge's last day, executing it closes the
        challenge and un-executing reopens it.
        """
        habit_day[const.DATA_HABIT_DAY_WAS_EXECUTED] = executed
        habit_day[const.DATA_UPDATED_AT] = now.isoformat()

        _, to_date = ChallengeEngine.date_range(challenge)
        if today == to_date:
            challenge[const.DATA_CHALLENGE_IS_CLOSED] = executed

    @staticmethod
    def close(
        challenge: ChallengeData, days: Iterable[HabitDayData], today: date
    ) -> list[HabitDayData]:
        """Close the challenge as of today.

        Sets to_date to yesterday and is_closed to True. Idempotent.

        Returns:
            The HabitDays dated today or later; the caller deletes them.
        """
        removed = [d for d in days if _day_date(d) >= today]
        challenge[const.DATA_CHALLENGE_IS_CLOSED] = True

        yesterday = dt_add_days(today, -1)
        _, to_date = ChallengeEngine.date_range(challenge)
        if to_date > yesterday:
            challenge[const.DATA_CHALLENGE_TO_DATE] = yesterday.isoformat()
        return removed

    @staticmethod
    def should_auto_close(challenge: ChallengeData, today: date) -> bool:
        """Check if an open challenge has ended before today."""
        if challenge[const.DATA_CHALLENGE_IS_CLOSED]:
            return False
        _, to_date = ChallengeEngine.date_range(challenge)
        return to_date < today

    # =========================================================================
    # STREAKS (OFFENSIVES)
    # =========================================================================

    @staticmethod
    def is_current_streak(streak: StreakData, today: date) -> bool:
        """A streak is current while it ends today or yesterday."""
        to_date = date.fromisoformat(streak[const.DATA_STREAK_TO_DATE])
        return to_date in (today, dt_add_days(today, -1))

    @staticmethod
    def get_current_offensive(
        streaks: Iterable[StreakData],
        days: Iterable[HabitDayData],
        today: date,
    ) -> StreakData | None:
        """Return the challenge's unbroken streak, if any.

        Returns None for a challenge without days, or when every streak ended
        before yesterday.
        """
        if not list(days):
            return None

        current = [s for s in streaks if ChallengeEngine.is_current_streak(s, today)]
        if not current:
            return None
        # Only one streak can end today/yesterday; keep the latest if history is odd.
        return max(current, key=lambda s: s[const.DATA_STREAK_TO_DATE])

    @staticmethod
    def streak_length(streak: StreakData) -> int:
        """Return the number of days covered by a streak (at least 1)."""
        from_date = date.fromisoformat(streak[const.DATA_STREAK_FROM_DATE])
        to_date = date.fromisoformat(streak[const.DATA_STREAK_TO_DATE])
        return max(dt_days_between(from_date, to_date) + 1, 1)

    @staticmethod
    def extend_streak(streak: StreakData, today: date, now: datetime) -> None:
        """Move a current streak's end to today."""
        streak[const.DATA_STREAK_TO_DATE] = today.isoformat()
        streak[const.DATA_UPDATED_AT] = now.isoformat()

    @staticmethod
    def retract_streak(streak: StreakData, today: date, now: datetime) -> bool:
        """Undo today's contribution to a streak after un-marking today.

        Returns:
            True if the streak started today and should be removed entirely.
        """
        to_date = date.fromisoformat(streak[const.DATA_STREAK_TO_DATE])
        if to_date != today:
            return False

        from_date = date.fromisoformat(streak[const.DATA_STREAK_FROM_DATE])
        if from_date == today:
            return True

        streak[const.DATA_STREAK_TO_DATE] = dt_add_days(today, -1).isoformat()
        streak[const.DATA_UPDATED_AT] = now.isoformat()
        return False
