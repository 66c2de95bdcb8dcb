"""Day Registry - shared lookup table of calendar days.

A Day exists at most once per calendar date and is referenced by the HabitDay
records of every habit tracked on that date. Days are created lazily and
deleted once nothing references them.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from .. import const
from ..exceptions import DayAlreadyExistsError, InvariantViolationError
from ..utils.dt_utils import dt_to_date
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..storage_manager import UnitOfWork
    from ..type_defs import DayData


class DayRegistry(BaseManager):
    """Manages Day records."""

    async def async_setup(self) -> None:
        """Nothing to prepare; days are created on demand."""
        const.LOGGER.debug("DayRegistry: Ready for entry %s", self.entry_id)

    def day_for(self, uow: UnitOfWork, day: str | date | datetime) -> DayData | None:
        """Return the Day of a calendar date (time of day is ignored).

        Raises:
            InvariantViolationError: If more than one Day shares the date.
        """
        iso_date = dt_to_date(day).isoformat()
        matches = uow.fetch(
            const.DATA_DAYS, lambda record: record[const.DATA_DAY_DATE] == iso_date
        )
        if len(matches) > 1:
            const.LOGGER.error(
                "ERROR: %s Day records share the date %s", len(matches), iso_date
            )
            raise InvariantViolationError(f"Duplicate Day records for {iso_date}")
        return matches[0] if matches else None  # type: ignore[return-value]

    def create_day(self, uow: UnitOfWork, day: str | date | datetime) -> DayData:
        """Create the Day of a calendar date.

        Raises:
            DayAlreadyExistsError: If a Day for the date exists already.
        """
        iso_date = dt_to_date(day).isoformat()
        if self.day_for(uow, iso_date) is not None:
            raise DayAlreadyExistsError(
                const.ERROR_DAY_ALREADY_EXISTS_FMT.format(iso_date)
            )
        const.LOGGER.debug("DEBUG: Creating Day %s", iso_date)
        return uow.create(const.DATA_DAYS, {const.DATA_DAY_DATE: iso_date})  # type: ignore[return-value]

    def get_or_create_day(
        self, uow: UnitOfWork, day: str | date | datetime
    ) -> DayData:
        """Return the Day of a date, creating it when missing.

        Lookup and creation are not atomic across writers; this is safe only
        inside a single unit of work, which is the only way writes happen.
        """
        existing = self.day_for(uow, day)
        if existing is not None:
            return existing
        return self.create_day(uow, day)

    def delete_day(self, uow: UnitOfWork, day: DayData) -> None:
        """Delete a Day record."""
        uow.delete(const.DATA_DAYS, day[const.DATA_INTERNAL_ID])

    def prune_unreferenced(self, uow: UnitOfWork) -> int:
        """Delete every Day no HabitDay references.

        Returns:
            The number of Days deleted.
        """
        referenced = {
            habit_day[const.DATA_HABIT_DAY_DAY_ID]
            for habit_day in uow.fetch(const.DATA_HABIT_DAYS)
        }
        orphans = uow.fetch(
            const.DATA_DAYS,
            lambda record: record[const.DATA_INTERNAL_ID] not in referenced,
        )
        for day in orphans:
            self.delete_day(uow, day)  # type: ignore[arg-type]

        if orphans:
            const.LOGGER.debug("DEBUG: Pruned %s unreferenced Day(s)", len(orphans))
        return len(orphans)
