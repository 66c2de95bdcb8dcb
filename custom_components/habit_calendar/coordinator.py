# File: coordinator.py
"""Coordinator for the Habit Calendar integration.

Owns the storage manager, the notifier and the managers. Its `data` is always
the committed storage data: every unit of work opened through the coordinator
pushes the new state to listeners when it commits. Open challenges that ended
are closed at setup and at local midnight.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_track_time_change
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .managers import (
    ChallengeManager,
    DayRegistry,
    FireTimeManager,
    HabitManager,
    NotificationManager,
)
from .notifier import HomeAssistantReminderNotifier, ReminderNotifier
from .utils.dt_utils import dt_now_local

if TYPE_CHECKING:
    from .storage_manager import HabitCalendarStorageManager, UnitOfWork
    from .type_defs import Clock, StorageData


class HabitCalendarCoordinator(DataUpdateCoordinator[dict]):
    """Coordinator for Habit Calendar integration.

    Manages data primarily using internal_id for entities.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        storage_manager: HabitCalendarStorageManager,
        notifier: ReminderNotifier | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the HabitCalendarCoordinator.

        Args:
            hass: Home Assistant instance
            config_entry: The integration's config entry
            storage_manager: Initialized storage manager
            notifier: Reminder notifier (defaults to the Home Assistant notifier)
            clock: Returns the current local datetime (defaults to dt_now_local)
        """
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.config_entry = config_entry
        self.storage_manager = storage_manager
        self.notifier: ReminderNotifier = notifier or HomeAssistantReminderNotifier(
            hass,
            config_entry.options.get(
                const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
            ),
            config_entry.entry_id,
        )
        self._clock: Clock = clock or dt_now_local
        self._unsub_midnight: CALLBACK_TYPE | None = None
        self.data = storage_manager.data

        self.day_registry = DayRegistry(hass, self)
        self.challenge_manager = ChallengeManager(hass, self, self.day_registry)
        self.fire_time_manager = FireTimeManager(hass, self)
        self.notification_manager = NotificationManager(
            hass, self, self.challenge_manager, self.fire_time_manager
        )
        self.habit_manager = HabitManager(
            hass,
            self,
            self.challenge_manager,
            self.fire_time_manager,
            self.notification_manager,
        )

    # -------------------------------------------------------------------------------------
    # Clock, options and transactions
    # -------------------------------------------------------------------------------------

    def now(self) -> datetime:
        """Return the current local datetime from the injected clock."""
        return self._clock()

    @property
    def reminder_subtitle(self) -> str:
        """Subtitle shown on every reminder."""
        return self.config_entry.options.get(
            const.CONF_REMINDER_SUBTITLE, const.DEFAULT_REMINDER_SUBTITLE
        )

    def unit_of_work(self) -> UnitOfWork:
        """Open a unit of work whose commits refresh the coordinator's data."""
        return self.storage_manager.unit_of_work(on_commit=self._handle_commit)

    @callback
    def _handle_commit(self, committed: StorageData) -> None:
        """Publish newly committed data to listeners."""
        self.async_set_updated_data(committed)

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> StorageData:
        """Return the committed data; nothing is polled."""
        return self.storage_manager.data

    async def async_setup(self) -> None:
        """Set up managers, close finished challenges and restore reminders."""
        for manager in (
            self.day_registry,
            self.challenge_manager,
            self.fire_time_manager,
            self.notification_manager,
            self.habit_manager,
        ):
            await manager.async_setup()

        await self.habit_manager.async_close_past_challenges()
        await self.notification_manager.async_reconcile(self.now())

        self._unsub_midnight = async_track_time_change(
            self.hass, self._async_handle_midnight, **const.DEFAULT_MIDNIGHT_TIME
        )
        const.LOGGER.debug(
            "Coordinator setup complete for entry %s", self.config_entry.entry_id
        )

    async def _async_handle_midnight(self, _now: datetime) -> None:
        """Close the challenges that ended yesterday."""
        const.LOGGER.debug(
            "Midnight processing for entry %s", self.config_entry.entry_id
        )
        await self.habit_manager.async_close_past_challenges()

    async def async_shutdown(self) -> None:
        """Disarm pending reminders and stop the coordinator."""
        if self._unsub_midnight is not None:
            self._unsub_midnight()
            self._unsub_midnight = None
        await self.notifier.async_shutdown()
        await super().async_shutdown()
