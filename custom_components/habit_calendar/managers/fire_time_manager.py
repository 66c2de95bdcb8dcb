"""Fire-Time Manager - the daily reminder times of each habit."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time
from typing import TYPE_CHECKING, Any

from .. import const
from ..exceptions import InvalidTimeComponentsError
from ..utils.dt_utils import parse_time_of_day
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..storage_manager import UnitOfWork
    from ..type_defs import FireTimeData, NotificationData, StorageData


def _sort_key(fire_time: dict[str, Any]) -> tuple[int, int]:
    return (fire_time[const.DATA_FIRE_TIME_HOUR], fire_time[const.DATA_FIRE_TIME_MINUTE])


def validate_time_components(hour: int, minute: int) -> None:
    """Check that hour is within 0-23 and minute within 0-59.

    Raises:
        InvalidTimeComponentsError: If either component is out of range.
    """
    if not (
        const.FIRE_TIME_HOUR_MIN <= hour <= const.FIRE_TIME_HOUR_MAX
        and const.FIRE_TIME_MINUTE_MIN <= minute <= const.FIRE_TIME_MINUTE_MAX
    ):
        raise InvalidTimeComponentsError(
            hour, minute, const.ERROR_INVALID_TIME_FMT.format(hour, minute)
        )


def parse_fire_time(value: str | time) -> tuple[int, int]:
    """Turn "HH:MM" (or a time object) into validated (hour, minute) components.

    Raises:
        InvalidTimeComponentsError: If the value cannot be parsed or is out of range.
    """
    if isinstance(value, time):
        return (value.hour, value.minute)

    components = parse_time_of_day(value)
    if components is None:
        raise InvalidTimeComponentsError(
            None, None, const.ERROR_INVALID_TIME_STRING_FMT.format(value)
        )
    validate_time_components(*components)
    return components


class FireTimeManager(BaseManager):
    """Manages FireTime records."""

    async def async_setup(self) -> None:
        """Log the loaded fire time count."""
        const.LOGGER.debug(
            "FireTimeManager: %s fire time(s) loaded",
            len(self.coordinator.data.get(const.DATA_FIRE_TIMES, {})),
        )

    # =========================================================================
    # READS
    # =========================================================================

    def all_sorted(self, data: StorageData) -> list[FireTimeData]:
        """Return every fire time ordered by (hour, minute)."""
        return sorted(data.get(const.DATA_FIRE_TIMES, {}).values(), key=_sort_key)

    def for_habit(self, data: StorageData, habit_id: str) -> list[FireTimeData]:
        """Return a habit's fire times ordered by (hour, minute)."""
        return [ft for ft in self.all_sorted(data) if ft[const.DATA_HABIT_ID] == habit_id]

    @staticmethod
    def format_fire_time(fire_time: FireTimeData) -> str:
        """Format a fire time as "HH:MM"."""
        return (
            f"{fire_time[const.DATA_FIRE_TIME_HOUR]:02d}"
            f"{const.FIRE_TIME_SEPARATOR}"
            f"{fire_time[const.DATA_FIRE_TIME_MINUTE]:02d}"
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def create(
        self, uow: UnitOfWork, habit_id: str, hour: int, minute: int, now: datetime
    ) -> FireTimeData:
        """Create a fire time; an existing (hour, minute) of the habit is returned as is.

        Raises:
            InvalidTimeComponentsError: If hour or minute is out of range.
        """
        validate_time_components(hour, minute)

        for existing in self.for_habit(uow.data, habit_id):
            if _sort_key(existing) == (hour, minute):
                const.LOGGER.debug(
                    "DEBUG: Fire time %02d:%02d already exists for habit %s",
                    hour,
                    minute,
                    habit_id,
                )
                return existing

        return uow.create(  # type: ignore[return-value]
            const.DATA_FIRE_TIMES,
            {
                const.DATA_HABIT_ID: habit_id,
                const.DATA_FIRE_TIME_HOUR: hour,
                const.DATA_FIRE_TIME_MINUTE: minute,
                const.DATA_CREATED_AT: now.isoformat(),
            },
        )

    def delete(self, uow: UnitOfWork, fire_time: FireTimeData) -> list[NotificationData]:
        """Delete a fire time and its Notifications.

        Returns:
            The deleted Notifications, so the caller can cancel them.
        """
        fire_time_id = fire_time[const.DATA_INTERNAL_ID]
        notifications = uow.fetch(
            const.DATA_NOTIFICATIONS,
            lambda n: n[const.DATA_NOTIFICATION_FIRE_TIME_ID] == fire_time_id,
        )
        for notification in notifications:
            uow.delete(const.DATA_NOTIFICATIONS, notification[const.DATA_INTERNAL_ID])
        uow.delete(const.DATA_FIRE_TIMES, fire_time_id)
        return notifications  # type: ignore[return-value]

    def delete_for_habit(self, uow: UnitOfWork, habit_id: str) -> list[NotificationData]:
        """Delete all fire times of a habit with their Notifications."""
        removed: list[NotificationData] = []
        for fire_time in self.for_habit(uow.data, habit_id):
            removed.extend(self.delete(uow, fire_time))
        return removed

    def replace_all(
        self,
        uow: UnitOfWork,
        habit_id: str,
        components: Iterable[tuple[int, int]],
        now: datetime,
    ) -> list[NotificationData]:
        """Replace a habit's fire times with a new set.

        All components are validated before anything is deleted.

        Returns:
            The Notifications deleted with the old fire times.
        """
        components = list(components)
        for hour, minute in components:
            validate_time_components(hour, minute)

        removed = self.delete_for_habit(uow, habit_id)
        for hour, minute in components:
            self.create(uow, habit_id, hour, minute, now)

        const.LOGGER.info(
            "INFO: Habit %s now has %s fire time(s)",
            habit_id,
            len(self.for_habit(uow.data, habit_id)),
        )
        return removed
