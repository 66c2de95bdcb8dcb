"""Challenge Manager - persistence side of the challenge state machine.

Applies ChallengeEngine decisions to stored records: creating challenges and
their HabitDays, closing them, marking today and keeping streaks current.
Write methods take the caller's UnitOfWork; read methods take a StorageData
mapping so they work on committed data and on a working copy alike.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.challenge_engine import ChallengeEngine
from ..exceptions import (
    ChallengeOverlapError,
    HabitCalendarError,
    InvariantViolationError,
    NotFoundError,
)
from ..type_defs import CompletionProgress
from ..utils.dt_utils import dt_to_date
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitCalendarCoordinator
    from ..storage_manager import UnitOfWork
    from ..type_defs import ChallengeData, HabitDayData, StorageData, StreakData
    from .day_registry import DayRegistry


def _values(data: StorageData, bucket: str) -> Iterable[dict[str, Any]]:
    """Iterate the records of a bucket."""
    return data.get(bucket, {}).values()


class ChallengeManager(BaseManager):
    """Manages Challenge, HabitDay and Streak records."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitCalendarCoordinator,
        day_registry: DayRegistry,
    ) -> None:
        """Initialize the challenge manager."""
        super().__init__(hass, coordinator)
        self.day_registry = day_registry

    async def async_setup(self) -> None:
        """Log the loaded challenge count."""
        const.LOGGER.debug(
            "ChallengeManager: %s challenge(s) loaded",
            len(self.coordinator.data.get(const.DATA_CHALLENGES, {})),
        )

    # =========================================================================
    # READS
    # =========================================================================

    def get_challenges(self, data: StorageData, habit_id: str) -> list[ChallengeData]:
        """Return a habit's challenges ordered by from_date."""
        challenges = [
            c
            for c in _values(data, const.DATA_CHALLENGES)
            if c[const.DATA_HABIT_ID] == habit_id
        ]
        return sorted(challenges, key=lambda c: c[const.DATA_CHALLENGE_FROM_DATE])  # type: ignore[return-value]

    def get_days(self, data: StorageData, challenge_id: str) -> list[HabitDayData]:
        """Return a challenge's HabitDays ordered by date."""
        return ChallengeEngine.sorted_days(
            d
            for d in _values(data, const.DATA_HABIT_DAYS)
            if d[const.DATA_HABIT_DAY_CHALLENGE_ID] == challenge_id
        )

    def get_habit_days(self, data: StorageData, habit_id: str) -> list[HabitDayData]:
        """Return every HabitDay of a habit across its challenges."""
        return ChallengeEngine.sorted_days(
            d
            for d in _values(data, const.DATA_HABIT_DAYS)
            if d[const.DATA_HABIT_ID] == habit_id
        )

    def get_streaks(self, data: StorageData, challenge_id: str) -> list[StreakData]:
        """Return a challenge's streaks, current and broken."""
        return [
            s
            for s in _values(data, const.DATA_STREAKS)
            if s[const.DATA_STREAK_CHALLENGE_ID] == challenge_id
        ]

    def get_current_challenge(
        self, data: StorageData, habit_id: str, today: date
    ) -> ChallengeData | None:
        """Return the habit's current challenge (see ChallengeEngine.select_current_challenge)."""
        try:
            return ChallengeEngine.select_current_challenge(
                self.get_challenges(data, habit_id), today
            )
        except InvariantViolationError as err:
            const.LOGGER.error("ERROR: Habit %s: %s", habit_id, err)
            raise

    def get_current_day(
        self, data: StorageData, challenge: ChallengeData, today: date
    ) -> HabitDayData | None:
        """Return the challenge's HabitDay for today, if any."""
        return ChallengeEngine.get_current_day(
            self.get_days(data, challenge[const.DATA_INTERNAL_ID]), today
        )

    def get_day(
        self, data: StorageData, challenge: ChallengeData, day: str | date | datetime
    ) -> HabitDayData | None:
        """Return the challenge's HabitDay for a date, if any."""
        return ChallengeEngine.get_day(
            self.get_days(data, challenge[const.DATA_INTERNAL_ID]), day
        )

    def get_completion_progress(
        self, data: StorageData, challenge: ChallengeData, today: date
    ) -> CompletionProgress:
        """Return the challenge's (past, total) progress."""
        return ChallengeEngine.get_completion_progress(
            self.get_days(data, challenge[const.DATA_INTERNAL_ID]), today
        )

    def get_current_offensive(
        self, data: StorageData, challenge: ChallengeData, today: date
    ) -> StreakData | None:
        """Return the challenge's current streak, if any."""
        challenge_id = challenge[const.DATA_INTERNAL_ID]
        return ChallengeEngine.get_current_offensive(
            self.get_streaks(data, challenge_id),
            self.get_days(data, challenge_id),
            today,
        )

    def get_notification_order_text(
        self, data: StorageData, habit_day: HabitDayData
    ) -> str:
        """Return the reminder sentence for a HabitDay within its challenge."""
        return ChallengeEngine.get_notification_order_text(
            self.get_days(data, habit_day[const.DATA_HABIT_DAY_CHALLENGE_ID]),
            habit_day,
        )

    def get_reminder_days(
        self, data: StorageData, habit_id: str, today: date
    ) -> list[HabitDayData]:
        """Return the HabitDays of the current and future challenges of a habit."""
        challenge_ids = {
            c[const.DATA_INTERNAL_ID]
            for c in self.get_challenges(data, habit_id)
            if ChallengeEngine.date_range(c)[0] > today
        }
        current = self.get_current_challenge(data, habit_id, today)
        if current is not None:
            challenge_ids.add(current[const.DATA_INTERNAL_ID])

        return ChallengeEngine.sorted_days(
            d
            for d in _values(data, const.DATA_HABIT_DAYS)
            if d[const.DATA_HABIT_DAY_CHALLENGE_ID] in challenge_ids
        )

    def get_executed_count(self, data: StorageData, habit_id: str) -> int:
        """Return how many days of a habit were executed, over all challenges."""
        return len(ChallengeEngine.get_executed_days(self.get_habit_days(data, habit_id)))

    def get_execution_percentage(self, data: StorageData, habit_id: str) -> float:
        """Return executed days as a percentage of all tracked days (0 if none)."""
        habit_days = self.get_habit_days(data, habit_id)
        if not habit_days:
            return 0.0
        executed = len(ChallengeEngine.get_executed_days(habit_days))
        return executed / len(habit_days) * 100

    def is_in_progress(self, data: StorageData, habit_id: str, today: date) -> bool:
        """A habit is in progress while an open challenge contains today."""
        return any(
            not c[const.DATA_CHALLENGE_IS_CLOSED] and ChallengeEngine.contains(c, today)
            for c in self.get_challenges(data, habit_id)
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def create_challenge(
        self,
        uow: UnitOfWork,
        habit_id: str,
        dates: Iterable[str | date | datetime],
        now: datetime,
    ) -> ChallengeData:
        """Create a challenge with one HabitDay per distinct date.

        Prior challenges are left untouched.

        Raises:
            HabitCalendarError: If no date is given.
            ChallengeOverlapError: If the range overlaps an open challenge.
        """
        days = sorted({dt_to_date(value) for value in dates})
        if not days:
            raise HabitCalendarError(const.ERROR_EMPTY_DAYS)
        if len(days) < const.RECOMMENDED_MIN_CHALLENGE_DAYS:
            const.LOGGER.warning(
                "WARNING: Habit %s challenge has only %s day(s)", habit_id, len(days)
            )

        challenge: dict[str, Any] = {
            const.DATA_HABIT_ID: habit_id,
            const.DATA_CHALLENGE_FROM_DATE: days[0].isoformat(),
            const.DATA_CHALLENGE_TO_DATE: days[-1].isoformat(),
            const.DATA_CHALLENGE_IS_CLOSED: False,
            const.DATA_CREATED_AT: now.isoformat(),
        }
        for other in self.get_challenges(uow.data, habit_id):
            if not other[const.DATA_CHALLENGE_IS_CLOSED] and ChallengeEngine.ranges_overlap(
                challenge, other  # type: ignore[arg-type]
            ):
                raise ChallengeOverlapError(
                    f"Challenge {days[0]}..{days[-1]} overlaps open challenge "
                    f"{other[const.DATA_INTERNAL_ID]}"
                )

        record = uow.create(const.DATA_CHALLENGES, challenge)
        for day in days:
            self._create_habit_day(uow, record, day)  # type: ignore[arg-type]

        const.LOGGER.info(
            "INFO: Created challenge %s for habit %s (%s..%s, %s days)",
            record[const.DATA_INTERNAL_ID],
            habit_id,
            days[0],
            days[-1],
            len(days),
        )
        return record  # type: ignore[return-value]

    def edit_days(
        self,
        uow: UnitOfWork,
        habit_id: str,
        dates: Iterable[str | date | datetime],
        today: date,
        now: datetime,
    ) -> ChallengeData:
        """Replace the habit's plan with a new challenge over the given dates.

        The current open challenge, and any open challenge that has not started
        yet, is closed first. Past challenges are never changed.
        """
        current = self.get_current_challenge(uow.data, habit_id, today)
        current_id = current[const.DATA_INTERNAL_ID] if current else None

        to_close = []
        for challenge in self.get_challenges(uow.data, habit_id):
            if challenge[const.DATA_CHALLENGE_IS_CLOSED]:
                continue
            from_date, _ = ChallengeEngine.date_range(challenge)
            if challenge[const.DATA_INTERNAL_ID] == current_id or from_date > today:
                to_close.append(challenge)
        for challenge in to_close:
            self.close_challenge(uow, challenge, today)

        return self.create_challenge(uow, habit_id, dates, now)

    def close_challenge(
        self, uow: UnitOfWork, challenge: ChallengeData, today: date
    ) -> list[str]:
        """Close a challenge as of today and delete its days from today on.

        Streaks are cut back to the new end date. A challenge left without days
        is deleted together with its streaks.

        Returns:
            The internal ids of the deleted HabitDays.
        """
        challenge_id = challenge[const.DATA_INTERNAL_ID]
        removed = ChallengeEngine.close(challenge, self.get_days(uow.data, challenge_id), today)
        uow.mark_dirty()
        removed_ids = [d[const.DATA_INTERNAL_ID] for d in removed]
        for habit_day_id in removed_ids:
            uow.delete(const.DATA_HABIT_DAYS, habit_day_id)

        to_date = challenge[const.DATA_CHALLENGE_TO_DATE]
        for streak in self.get_streaks(uow.data, challenge_id):
            if streak[const.DATA_STREAK_FROM_DATE] > to_date:
                uow.delete(const.DATA_STREAKS, streak[const.DATA_INTERNAL_ID])
            elif streak[const.DATA_STREAK_TO_DATE] > to_date:
                streak[const.DATA_STREAK_TO_DATE] = to_date

        if not self.get_days(uow.data, challenge_id):
            const.LOGGER.info(
                "INFO: Challenge %s had no past days left and was removed", challenge_id
            )
            self._delete_challenge(uow, challenge)
        else:
            const.LOGGER.info(
                "INFO: Closed challenge %s (now ends %s)", challenge_id, to_date
            )

        self.day_registry.prune_unreferenced(uow)
        return removed_ids

    def close_past_challenges(self, uow: UnitOfWork, today: date) -> int:
        """Close every open challenge that ended before today.

        Returns:
            The number of challenges closed.
        """
        expired = [
            c
            for c in uow.fetch(const.DATA_CHALLENGES)
            if ChallengeEngine.should_auto_close(c, today)  # type: ignore[arg-type]
        ]
        for challenge in expired:
            self.close_challenge(uow, challenge, today)  # type: ignore[arg-type]
        return len(expired)

    def mark_current_day_as_executed(
        self,
        uow: UnitOfWork,
        challenge: ChallengeData,
        today: date,
        now: datetime,
        executed: bool = True,
    ) -> HabitDayData:
        """Mark today's HabitDay of a challenge and update its streak.

        Today's HabitDay is created when the challenge range covers today but
        the day was not planned.

        Raises:
            NotFoundError: If today is outside the challenge's range.
        """
        challenge_id = challenge[const.DATA_INTERNAL_ID]
        habit_day = self.get_current_day(uow.data, challenge, today)
        if habit_day is None:
            if not ChallengeEngine.contains(challenge, today):
                raise NotFoundError(const.ERROR_TODAY_NOT_IN_CHALLENGE)
            habit_day = self._create_habit_day(uow, challenge, today)

        # Streak lookup happens before the flag changes so "current" means
        # current as of the previous state.
        current_streak = self.get_current_offensive(uow.data, challenge, today)

        ChallengeEngine.apply_execution(challenge, habit_day, executed, today, now)
        uow.mark_dirty()

        if executed:
            if current_streak is not None:
                ChallengeEngine.extend_streak(current_streak, today, now)
            else:
                uow.create(
                    const.DATA_STREAKS,
                    {
                        const.DATA_STREAK_CHALLENGE_ID: challenge_id,
                        const.DATA_HABIT_ID: challenge[const.DATA_HABIT_ID],
                        const.DATA_STREAK_FROM_DATE: today.isoformat(),
                        const.DATA_STREAK_TO_DATE: today.isoformat(),
                        const.DATA_CREATED_AT: now.isoformat(),
                        const.DATA_UPDATED_AT: now.isoformat(),
                    },
                )
        elif current_streak is not None and ChallengeEngine.retract_streak(
            current_streak, today, now
        ):
            uow.delete(const.DATA_STREAKS, current_streak[const.DATA_INTERNAL_ID])

        const.LOGGER.info(
            "INFO: Habit %s marked %s for %s",
            challenge[const.DATA_HABIT_ID],
            "executed" if executed else "not executed",
            today,
        )
        return habit_day

    def delete_for_habit(self, uow: UnitOfWork, habit_id: str) -> int:
        """Delete every challenge of a habit with its days and streaks.

        Returns:
            The number of challenges deleted.
        """
        challenges = self.get_challenges(uow.data, habit_id)
        for challenge in challenges:
            self._delete_challenge(uow, challenge)
        self.day_registry.prune_unreferenced(uow)
        return len(challenges)

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _create_habit_day(
        self, uow: UnitOfWork, challenge: ChallengeData, day: date
    ) -> HabitDayData:
        """Create an unexecuted HabitDay of a challenge on a date."""
        day_record = self.day_registry.get_or_create_day(uow, day)
        return uow.create(  # type: ignore[return-value]
            const.DATA_HABIT_DAYS,
            {
                const.DATA_HABIT_DAY_DAY_ID: day_record[const.DATA_INTERNAL_ID],
                const.DATA_HABIT_DAY_DATE: day.isoformat(),
                const.DATA_HABIT_ID: challenge[const.DATA_HABIT_ID],
                const.DATA_HABIT_DAY_CHALLENGE_ID: challenge[const.DATA_INTERNAL_ID],
                const.DATA_HABIT_DAY_WAS_EXECUTED: False,
                const.DATA_UPDATED_AT: None,
            },
        )

    def _delete_challenge(self, uow: UnitOfWork, challenge: ChallengeData) -> None:
        """Delete a challenge with its HabitDays and streaks (Days are kept)."""
        challenge_id = challenge[const.DATA_INTERNAL_ID]
        for habit_day in self.get_days(uow.data, challenge_id):
            uow.delete(const.DATA_HABIT_DAYS, habit_day[const.DATA_INTERNAL_ID])
        for streak in self.get_streaks(uow.data, challenge_id):
            uow.delete(const.DATA_STREAKS, streak[const.DATA_INTERNAL_ID])
        uow.delete(const.DATA_CHALLENGES, challenge_id)
