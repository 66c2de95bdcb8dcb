# File: notification_manager.py
"""Notification Manager for Habit Calendar integration.

This manager keeps the stored Notification rows and the notifier in step:
- Rebuild: tear down a habit's reminder rows and fan out a fresh set
- Sync: submit rows to the notifier and confirm them with was_scheduled
- Unschedule: cancel reminders by external id
- Reconcile: after a restart, re-submit rows the notifier no longer holds

Rows are written inside the caller's unit of work; talking to the notifier
always happens after the commit.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import date, datetime
from typing import TYPE_CHECKING, NamedTuple
import uuid

from .. import const
from ..engines.fanout_engine import FanOutEngine
from ..exceptions import SchedulingError
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitCalendarCoordinator
    from ..notifier import ReminderNotifier
    from ..storage_manager import UnitOfWork
    from ..type_defs import NotificationData, ReminderContent, StorageData
    from .challenge_manager import ChallengeManager
    from .fire_time_manager import FireTimeManager


class RebuildResult(NamedTuple):
    """Rows removed and created by a rebuild."""

    stale: list[NotificationData]
    fresh: list[NotificationData]


class NotificationManager(BaseManager):
    """Manager for a habit's scheduled reminders.

    Uses coordinator for:
    - the committed data when building reminder content
    - the notifier and the configured reminder subtitle
    - units of work for the was_scheduled follow-up writes
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitCalendarCoordinator,
        challenge_manager: ChallengeManager,
        fire_time_manager: FireTimeManager,
    ) -> None:
        """Initialize notification manager."""
        super().__init__(hass, coordinator)
        self.challenge_manager = challenge_manager
        self.fire_time_manager = fire_time_manager

    async def async_setup(self) -> None:
        """Check notifier permission once at startup."""
        authorized = await self.notifier.async_request_authorization()
        const.LOGGER.debug(
            "NotificationManager: notifier authorized=%s, %s stored reminder(s)",
            authorized,
            len(self.coordinator.data.get(const.DATA_NOTIFICATIONS, {})),
        )

    @property
    def notifier(self) -> ReminderNotifier:
        """The notifier reminders are submitted to."""
        return self.coordinator.notifier

    # =========================================================================
    # READS
    # =========================================================================

    def for_habit(self, data: StorageData, habit_id: str) -> list[NotificationData]:
        """Return a habit's Notification rows ordered by fire date."""
        rows = [
            n
            for n in data.get(const.DATA_NOTIFICATIONS, {}).values()
            if n[const.DATA_HABIT_ID] == habit_id
        ]
        return sorted(rows, key=lambda n: n[const.DATA_NOTIFICATION_FIRE_DATE])

    def build_content(
        self, data: StorageData, notification: NotificationData
    ) -> ReminderContent | None:
        """Build the reminder content of a row (None if its habit or day is gone)."""
        habit = data.get(const.DATA_HABITS, {}).get(notification[const.DATA_HABIT_ID])
        habit_day = data.get(const.DATA_HABIT_DAYS, {}).get(
            notification[const.DATA_NOTIFICATION_HABIT_DAY_ID]
        )
        if habit is None or habit_day is None:
            return None

        order_text = self.challenge_manager.get_notification_order_text(data, habit_day)
        return FanOutEngine.build_reminder_content(
            habit, order_text, self.coordinator.reminder_subtitle
        )

    # =========================================================================
    # REBUILD (inside the caller's unit of work)
    # =========================================================================

    def delete_for_habit(self, uow: UnitOfWork, habit_id: str) -> list[NotificationData]:
        """Delete all Notification rows of a habit and return them."""
        rows = self.for_habit(uow.data, habit_id)
        for row in rows:
            uow.delete(const.DATA_NOTIFICATIONS, row[const.DATA_INTERNAL_ID])
        return rows

    def rebuild(
        self, uow: UnitOfWork, habit_id: str, today: date, now: datetime
    ) -> RebuildResult:
        """Replace a habit's Notification rows with a fresh fan-out.

        Every existing row is deleted, whether or not it changed. One row per
        future (day, fire time) instant is created with a new external id and
        was_scheduled False. Pass the result to async_apply_rebuild after the
        unit of work commits.
        """
        stale = self.delete_for_habit(uow, habit_id)

        instants = FanOutEngine.compute_fire_instants(
            self.challenge_manager.get_reminder_days(uow.data, habit_id, today),
            self.fire_time_manager.for_habit(uow.data, habit_id),
            now,
        )
        fresh: list[NotificationData] = [
            uow.create(  # type: ignore[misc]
                const.DATA_NOTIFICATIONS,
                {
                    const.DATA_NOTIFICATION_EXTERNAL_ID: str(uuid.uuid4()),
                    const.DATA_HABIT_ID: habit_id,
                    const.DATA_NOTIFICATION_FIRE_TIME_ID: instant.fire_time_id,
                    const.DATA_NOTIFICATION_HABIT_DAY_ID: instant.habit_day_id,
                    const.DATA_NOTIFICATION_FIRE_DATE: instant.fire_at.isoformat(),
                    const.DATA_NOTIFICATION_WAS_SCHEDULED: False,
                },
            )
            for instant in instants
        ]
        uow.mark_dirty()

        const.LOGGER.info(
            "INFO: Rebuilt reminders for habit %s: %s removed, %s created",
            habit_id,
            len(stale),
            len(fresh),
        )
        return RebuildResult(stale=stale, fresh=fresh)

    async def async_apply_rebuild(self, result: RebuildResult) -> asyncio.Task[int] | None:
        """Cancel the stale reminders, then submit the fresh ones in the background.

        Returns:
            The scheduling task, or None when there is nothing to submit.
        """
        await self.async_unschedule(result.stale)
        if not result.fresh:
            return None
        return self.hass.async_create_task(
            self.async_schedule([n[const.DATA_INTERNAL_ID] for n in result.fresh]),
            f"{const.DOMAIN}_schedule_reminders",
        )

    # =========================================================================
    # SYNC SCHEDULER
    # =========================================================================

    async def async_schedule(self, notification_ids: Iterable[str]) -> int:
        """Submit committed rows to the notifier and confirm the accepted ones.

        Each submission is independent: refused reminders are logged and keep
        was_scheduled False while the rest go through. Rows removed by a newer
        rebuild before this runs are skipped.

        Returns:
            The number of reminders the notifier accepted.
        """
        if not await self.notifier.async_get_authorization_status():
            const.LOGGER.warning(
                "WARNING: Notifications are not authorized - reminders stay unscheduled"
            )
            return 0

        data = self.coordinator.data
        rows = data.get(const.DATA_NOTIFICATIONS, {})
        submissions: list[tuple[NotificationData, ReminderContent]] = []
        for notification_id in notification_ids:
            row = rows.get(notification_id)
            if row is None:
                continue
            content = self.build_content(data, row)
            if content is None:
                const.LOGGER.warning(
                    "WARNING: Reminder %s references a missing habit or day - skipped",
                    row[const.DATA_NOTIFICATION_EXTERNAL_ID],
                )
                continue
            submissions.append((row, content))

        if not submissions:
            return 0

        results = await asyncio.gather(
            *(
                self.notifier.async_submit(
                    row[const.DATA_NOTIFICATION_EXTERNAL_ID],
                    content,
                    datetime.fromisoformat(row[const.DATA_NOTIFICATION_FIRE_DATE]),
                )
                for row, content in submissions
            ),
            return_exceptions=True,
        )

        accepted: list[str] = []
        unexpected: list[BaseException] = []
        for (row, _), result in zip(submissions, results, strict=True):
            if isinstance(result, SchedulingError):
                const.LOGGER.warning(
                    "WARNING: Reminder %s was not scheduled: %s",
                    result.external_id,
                    result.reason,
                )
            elif isinstance(result, BaseException):
                unexpected.append(result)
            else:
                accepted.append(row[const.DATA_INTERNAL_ID])

        if accepted:
            async with self.coordinator.unit_of_work() as uow:
                for notification_id in accepted:
                    row = uow.get(const.DATA_NOTIFICATIONS, notification_id)
                    if row is not None:
                        row[const.DATA_NOTIFICATION_WAS_SCHEDULED] = True
                        uow.mark_dirty()

        const.LOGGER.debug(
            "DEBUG: Scheduled %s of %s reminder(s)", len(accepted), len(submissions)
        )
        if unexpected:
            raise unexpected[0]
        return len(accepted)

    async def async_unschedule(self, notifications: Iterable[NotificationData]) -> None:
        """Cancel reminders by external id; unknown ids are ignored."""
        external_ids = [n[const.DATA_NOTIFICATION_EXTERNAL_ID] for n in notifications]
        if external_ids:
            await self.notifier.async_cancel(external_ids)

    async def async_reconcile(self, now: datetime) -> int:
        """Re-submit future reminders the notifier lost, drop past rows.

        Returns:
            The number of rows handed back to the scheduler.
        """
        pending = set(await self.notifier.async_pending_ids())
        missing: list[str] = []
        expired = 0

        async with self.coordinator.unit_of_work() as uow:
            for row in uow.fetch(const.DATA_NOTIFICATIONS):
                fire_at = datetime.fromisoformat(row[const.DATA_NOTIFICATION_FIRE_DATE])
                if fire_at <= now:
                    uow.delete(const.DATA_NOTIFICATIONS, row[const.DATA_INTERNAL_ID])
                    expired += 1
                elif row[const.DATA_NOTIFICATION_EXTERNAL_ID] not in pending:
                    row[const.DATA_NOTIFICATION_WAS_SCHEDULED] = False
                    uow.mark_dirty()
                    missing.append(row[const.DATA_INTERNAL_ID])

        const.LOGGER.info(
            "INFO: Reminder reconciliation: %s expired, %s to re-submit",
            expired,
            len(missing),
        )
        if missing:
            await self.async_schedule(missing)
        return len(missing)
