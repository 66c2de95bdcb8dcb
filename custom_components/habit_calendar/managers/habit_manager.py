"""Habit Manager - the habit-level facade used by services.

Every write runs in one unit of work: the habit record, its challenge changes,
its fire times and the rebuilt Notification rows commit together. Reminders
are handed to the notifier only after that commit, except on deletion, where
they are cancelled before the rows disappear.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
import string
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.challenge_engine import ChallengeEngine
from ..exceptions import HabitCalendarError, NotFoundError
from ..type_defs import CompletionProgress
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitCalendarCoordinator
    from ..storage_manager import UnitOfWork
    from ..type_defs import HabitData, HabitDayData, NotificationData, StreakData
    from .challenge_manager import ChallengeManager
    from .fire_time_manager import FireTimeManager
    from .notification_manager import NotificationManager, RebuildResult


def treat_name(name: str) -> str:
    """Trim a habit name and capitalize each word."""
    return string.capwords(name.strip())


def coerce_color(value: const.HabitColor | int | str) -> const.HabitColor:
    """Accept a HabitColor, its value, or its lowercase name."""
    if isinstance(value, str):
        try:
            return const.HabitColor[value.upper()]
        except KeyError as err:
            raise HabitCalendarError(f"Unknown color '{value}'") from err
    return const.HabitColor(value)


class HabitManager(BaseManager):
    """Creates, edits and deletes habits and answers habit-level queries."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitCalendarCoordinator,
        challenge_manager: ChallengeManager,
        fire_time_manager: FireTimeManager,
        notification_manager: NotificationManager,
    ) -> None:
        """Initialize the habit manager."""
        super().__init__(hass, coordinator)
        self.challenge_manager = challenge_manager
        self.fire_time_manager = fire_time_manager
        self.notification_manager = notification_manager

    async def async_setup(self) -> None:
        """Log the loaded habits."""
        const.LOGGER.debug(
            "HabitManager: %s habit(s) loaded",
            len(self.coordinator.data.get(const.DATA_HABITS, {})),
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    async def async_create_habit(
        self,
        name: str,
        color: const.HabitColor | int | str,
        days: Iterable[str | date | datetime],
        fire_times: Iterable[tuple[int, int]] | None = None,
    ) -> HabitData:
        """Create a habit with its first challenge and optional fire times.

        Raises:
            HabitCalendarError: If the name is blank or no day is given.
            InvalidTimeComponentsError: If a fire time is out of range.
        """
        now = self.coordinator.now()
        today = now.date()
        treated = treat_name(name)
        if not treated:
            raise HabitCalendarError("Habit name cannot be empty")

        async with self.coordinator.unit_of_work() as uow:
            habit = uow.create(
                const.DATA_HABITS,
                {
                    const.DATA_HABIT_NAME: treated,
                    const.DATA_HABIT_COLOR: int(coerce_color(color)),
                    const.DATA_CREATED_AT: now.isoformat(),
                },
            )
            habit_id = habit[const.DATA_INTERNAL_ID]
            self.challenge_manager.create_challenge(uow, habit_id, days, now)
            if fire_times:
                self.fire_time_manager.replace_all(uow, habit_id, fire_times, now)
            result = self.notification_manager.rebuild(uow, habit_id, today, now)

        const.LOGGER.info("INFO: Created habit '%s' (%s)", treated, habit_id)
        await self.notification_manager.async_apply_rebuild(result)
        return self.get_habit(habit_id)

    async def async_edit_habit(
        self,
        habit_id: str,
        name: str | None = None,
        color: const.HabitColor | int | str | None = None,
        days: Iterable[str | date | datetime] | None = None,
        fire_times: Iterable[tuple[int, int]] | None = None,
    ) -> HabitData:
        """Edit a habit; reminders are rebuilt when name, days or fire times change.

        Raises:
            NotFoundError: If the habit does not exist.
        """
        now = self.coordinator.now()
        today = now.date()
        result: RebuildResult | None = None
        removed: list[NotificationData] = []

        async with self.coordinator.unit_of_work() as uow:
            habit = self._require_habit(uow, habit_id)
            needs_rebuild = False

            if name is not None:
                treated = treat_name(name)
                if not treated:
                    raise HabitCalendarError("Habit name cannot be empty")
                if treated != habit[const.DATA_HABIT_NAME]:
                    habit[const.DATA_HABIT_NAME] = treated
                    needs_rebuild = True
            if color is not None:
                habit[const.DATA_HABIT_COLOR] = int(coerce_color(color))
            uow.mark_dirty()

            if days is not None:
                self.challenge_manager.edit_days(uow, habit_id, days, today, now)
                needs_rebuild = True
            if fire_times is not None:
                removed = self.fire_time_manager.replace_all(
                    uow, habit_id, fire_times, now
                )
                needs_rebuild = True

            if needs_rebuild:
                result = self.notification_manager.rebuild(uow, habit_id, today, now)

        const.LOGGER.info("INFO: Edited habit %s", habit_id)
        if result is not None:
            await self.notification_manager.async_apply_rebuild(
                result._replace(stale=removed + result.stale)
            )
        return self.get_habit(habit_id)

    async def async_delete_habit(self, habit_id: str) -> None:
        """Delete a habit with everything it owns.

        Its reminders are cancelled before the deletion commits.

        Raises:
            NotFoundError: If the habit does not exist.
        """
        async with self.coordinator.unit_of_work() as uow:
            habit = self._require_habit(uow, habit_id)
            rows = self.notification_manager.delete_for_habit(uow, habit_id)
            rows.extend(self.fire_time_manager.delete_for_habit(uow, habit_id))
            self.challenge_manager.delete_for_habit(uow, habit_id)
            uow.delete(const.DATA_HABITS, habit_id)
            await self.notification_manager.async_unschedule(rows)

        const.LOGGER.info(
            "INFO: Deleted habit '%s' (%s)", habit[const.DATA_HABIT_NAME], habit_id
        )

    async def async_mark_today(
        self, habit_id: str, executed: bool = True
    ) -> HabitDayData:
        """Mark today of the habit's current challenge as executed or not.

        Raises:
            NotFoundError: If the habit does not exist or today is outside its
                current challenge.
        """
        now = self.coordinator.now()
        today = now.date()
        async with self.coordinator.unit_of_work() as uow:
            self._require_habit(uow, habit_id)
            challenge = self.challenge_manager.get_current_challenge(
                uow.data, habit_id, today
            )
            if challenge is None:
                raise NotFoundError(const.ERROR_TODAY_NOT_IN_CHALLENGE)
            return self.challenge_manager.mark_current_day_as_executed(
                uow, challenge, today, now, executed
            )

    async def async_close_past_challenges(self) -> int:
        """Close every open challenge whose last day has passed."""
        today = self.coordinator.now().date()
        async with self.coordinator.unit_of_work() as uow:
            closed = self.challenge_manager.close_past_challenges(uow, today)
            uow.data[const.DATA_META][const.DATA_META_LAST_MIDNIGHT_PROCESSED] = (
                today.isoformat()
            )
            uow.mark_dirty()

        if closed:
            const.LOGGER.info("INFO: Closed %s finished challenge(s)", closed)
        return closed

    # =========================================================================
    # READS (committed data)
    # =========================================================================

    def get_habit(self, habit_id: str) -> HabitData:
        """Return a committed habit record.

        Raises:
            NotFoundError: If the habit does not exist.
        """
        habit = self.coordinator.data.get(const.DATA_HABITS, {}).get(habit_id)
        if habit is None:
            raise NotFoundError(const.ERROR_HABIT_NOT_FOUND_FMT.format(habit_id))
        return habit

    def progress(self, habit_id: str) -> CompletionProgress:
        """Return the (past, total) progress of the habit's current challenge."""
        self.get_habit(habit_id)
        data = self.coordinator.data
        today = self.coordinator.now().date()
        challenge = self.challenge_manager.get_current_challenge(data, habit_id, today)
        if challenge is None:
            return CompletionProgress(past=0, total=0)
        return self.challenge_manager.get_completion_progress(data, challenge, today)

    def streak_status(self, habit_id: str) -> StreakData | None:
        """Return the current streak of the habit's current challenge."""
        self.get_habit(habit_id)
        data = self.coordinator.data
        today = self.coordinator.now().date()
        challenge = self.challenge_manager.get_current_challenge(data, habit_id, today)
        if challenge is None:
            return None
        return self.challenge_manager.get_current_offensive(data, challenge, today)

    def day_order_text(self, habit_id: str, day: str | date | datetime) -> str | None:
        """Return "{n}th day of the challenge." for a date of the current challenge."""
        self.get_habit(habit_id)
        data = self.coordinator.data
        today = self.coordinator.now().date()
        challenge = self.challenge_manager.get_current_challenge(data, habit_id, today)
        if challenge is None:
            return None
        habit_day = self.challenge_manager.get_day(data, challenge, day)
        if habit_day is None:
            return None
        return self.challenge_manager.get_notification_order_text(data, habit_day)

    def get_habit_summary(self, habit_id: str) -> dict[str, Any]:
        """Return the status of a habit as a JSON-serializable dict."""
        habit = self.get_habit(habit_id)
        data = self.coordinator.data
        today = self.coordinator.now().date()
        progress = self.progress(habit_id)
        streak = self.streak_status(habit_id)

        summary: dict[str, Any] = {
            const.ATTR_HABIT_ID: habit_id,
            const.ATTR_NAME: habit[const.DATA_HABIT_NAME],
            const.ATTR_COLOR: const.HabitColor(habit[const.DATA_HABIT_COLOR]).name.lower(),
            const.ATTR_PROGRESS_PAST: progress.past,
            const.ATTR_PROGRESS_TOTAL: progress.total,
            const.ATTR_STREAK_FROM: None,
            const.ATTR_STREAK_TO: None,
            const.ATTR_STREAK_LENGTH: 0,
            const.ATTR_ORDER_TEXT: self.day_order_text(habit_id, today),
            const.ATTR_EXECUTED_COUNT: self.challenge_manager.get_executed_count(
                data, habit_id
            ),
            const.ATTR_EXECUTION_PERCENTAGE: round(
                self.challenge_manager.get_execution_percentage(data, habit_id), 1
            ),
            const.ATTR_IN_PROGRESS: self.challenge_manager.is_in_progress(
                data, habit_id, today
            ),
            const.ATTR_FIRE_TIMES: [
                self.fire_time_manager.format_fire_time(fire_time)
                for fire_time in self.fire_time_manager.for_habit(data, habit_id)
            ],
            const.ATTR_PENDING_REMINDERS: len(
                self.notification_manager.for_habit(data, habit_id)
            ),
        }
        if streak is not None:
            summary[const.ATTR_STREAK_FROM] = streak[const.DATA_STREAK_FROM_DATE]
            summary[const.ATTR_STREAK_TO] = streak[const.DATA_STREAK_TO_DATE]
            summary[const.ATTR_STREAK_LENGTH] = ChallengeEngine.streak_length(streak)
        return summary

    def get_habits_in_progress(self) -> list[HabitData]:
        """Return the habits with an open challenge containing today, by name."""
        return self._split_habits()[0]

    def get_completed_habits(self) -> list[HabitData]:
        """Return the habits without an open challenge containing today, by name."""
        return self._split_habits()[1]

    async def async_notifications_authorized(self) -> bool:
        """Return whether the notifier can deliver reminders."""
        return await self.notification_manager.notifier.async_get_authorization_status()

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _require_habit(self, uow: UnitOfWork, habit_id: str) -> HabitData:
        habit = uow.get(const.DATA_HABITS, habit_id)
        if habit is None:
            raise NotFoundError(const.ERROR_HABIT_NOT_FOUND_FMT.format(habit_id))
        return habit  # type: ignore[return-value]

    def _split_habits(self) -> tuple[list[HabitData], list[HabitData]]:
        data = self.coordinator.data
        today = self.coordinator.now().date()
        in_progress: list[HabitData] = []
        completed: list[HabitData] = []
        habits = sorted(
            data.get(const.DATA_HABITS, {}).values(),
            key=lambda h: h[const.DATA_HABIT_NAME],
        )
        for habit in habits:
            if self.challenge_manager.is_in_progress(
                data, habit[const.DATA_INTERNAL_ID], today
            ):
                in_progress.append(habit)
            else:
                completed.append(habit)
        return in_progress, completed
