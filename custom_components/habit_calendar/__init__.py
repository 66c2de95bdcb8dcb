# File: __init__.py
"""Initialization file for the Habit Calendar integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and preparing the coordinator for data handling.

Key Features:
- Config entry setup and unload support.
- Coordinator initialization: managers, finished challenges, reminder restore.
- Storage management for persistent data handling.
- Companion app reminder actions (Yes/No) routed to mark today.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import Event, HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import HabitCalendarCoordinator
from .exceptions import PersistenceError
from .notification_action_handler import async_handle_notification_action
from .services import async_setup_services, async_unload_services
from .storage_manager import HabitCalendarStorageManager
from .utils.dt_utils import set_default_timezone


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info(
        "INFO: Starting setup for Habit Calendar entry: %s", entry.entry_id
    )

    time_zone = dt_util.get_time_zone(hass.config.time_zone)
    if time_zone is not None:
        set_default_timezone(time_zone)

    storage_manager = HabitCalendarStorageManager(hass, const.STORAGE_KEY)
    await storage_manager.async_initialize()

    coordinator = HabitCalendarCoordinator(hass, entry, storage_manager)

    try:
        await coordinator.async_setup()
    except PersistenceError as err:
        const.LOGGER.error("ERROR: Failed to prepare habit data: %s", err)
        raise ConfigEntryNotReady from err

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORAGE_MANAGER: storage_manager,
    }

    async_setup_services(hass)
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    # Listen for reminder actions from the companion app.
    async def handle_notification_event(event: Event) -> None:
        """Handle notification action events."""
        await async_handle_notification_action(hass, event)

    entry.async_on_unload(
        hass.bus.async_listen(const.NOTIFICATION_EVENT, handle_notification_event)
    )

    const.LOGGER.info(
        "INFO: Habit Calendar setup complete for entry: %s", entry.entry_id
    )
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options changed."""
    const.LOGGER.info("INFO: Options changed, reloading entry: %s", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Habit Calendar entry: %s", entry.entry_id)

    entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
    coordinator: HabitCalendarCoordinator = entry_data[const.COORDINATOR]
    await coordinator.async_shutdown()

    if not hass.data[const.DOMAIN]:
        await async_unload_services(hass)

    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("INFO: Removing Habit Calendar entry: %s", entry.entry_id)

    storage_manager = HabitCalendarStorageManager(hass, const.STORAGE_KEY)
    await storage_manager.async_delete_storage()

    const.LOGGER.info("INFO: Habit Calendar entry data cleared: %s", entry.entry_id)
