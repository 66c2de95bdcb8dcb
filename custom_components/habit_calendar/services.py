# File: services.py
"""Defines custom services for the Habit Calendar integration.

These services allow creating, editing and marking habits from scripts or
automations. Habits can be addressed by internal id or by name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .exceptions import NotFoundError
from .managers.fire_time_manager import parse_fire_time

if TYPE_CHECKING:
    from .coordinator import HabitCalendarCoordinator

# --- Service Schemas ---
DAYS_VALIDATOR = vol.All(cv.ensure_list, [cv.date], vol.Length(min=1))
FIRE_TIMES_VALIDATOR = vol.All(cv.ensure_list, [cv.string])
COLOR_VALIDATOR = vol.All(cv.string, vol.Lower, vol.In(const.HABIT_COLOR_OPTIONS))

CREATE_HABIT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_HABIT_NAME): vol.All(cv.string, vol.Length(min=1)),
        vol.Optional(
            const.FIELD_COLOR, default=const.DEFAULT_HABIT_COLOR.name.lower()
        ): COLOR_VALIDATOR,
        vol.Required(const.FIELD_DAYS): DAYS_VALIDATOR,
        vol.Optional(const.FIELD_FIRE_TIMES): FIRE_TIMES_VALIDATOR,
    }
)

EDIT_HABIT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_HABIT_ID): cv.string,
        vol.Optional(const.FIELD_HABIT_NAME): vol.All(cv.string, vol.Length(min=1)),
        vol.Optional(const.FIELD_COLOR): COLOR_VALIDATOR,
        vol.Optional(const.FIELD_DAYS): DAYS_VALIDATOR,
        vol.Optional(const.FIELD_FIRE_TIMES): FIRE_TIMES_VALIDATOR,
    }
)

DELETE_HABIT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_HABIT_ID): cv.string,
    }
)

MARK_TODAY_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_HABIT_ID): cv.string,
        vol.Optional(const.FIELD_EXECUTED, default=True): cv.boolean,
    }
)


def _date_requires_habit(value: dict[str, Any]) -> dict[str, Any]:
    """A date only makes sense for a single habit."""
    if const.FIELD_DATE in value and const.FIELD_HABIT_ID not in value:
        raise vol.Invalid(const.ERROR_DATE_WITHOUT_HABIT)
    return value


GET_HABIT_STATUS_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Optional(const.FIELD_HABIT_ID): cv.string,
            vol.Optional(const.FIELD_DATE): cv.date,
        }
    ),
    _date_requires_habit,
)


def get_coordinator(hass: HomeAssistant) -> HabitCalendarCoordinator:
    """Return the coordinator of the loaded Habit Calendar entry.

    Raises:
        HomeAssistantError: If no entry is loaded.
    """
    entries = hass.data.get(const.DOMAIN, {})
    if not entries:
        raise HomeAssistantError(const.ERROR_NO_ENTRY_LOADED)
    return next(iter(entries.values()))[const.COORDINATOR]


def resolve_habit_id(coordinator: HabitCalendarCoordinator, value: str) -> str:
    """Map a habit internal id or name (case-insensitive) to its internal id.

    Raises:
        NotFoundError: If no habit matches.
    """
    habits = coordinator.data.get(const.DATA_HABITS, {})
    if value in habits:
        return value

    wanted = value.strip().casefold()
    for habit_id, habit in habits.items():
        if habit[const.DATA_HABIT_NAME].casefold() == wanted:
            return habit_id
    raise NotFoundError(const.ERROR_HABIT_NOT_FOUND_FMT.format(value))


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Habit Calendar services."""

    async def handle_create_habit(call: ServiceCall) -> ServiceResponse:
        """Handle creating a habit with its first challenge."""
        coordinator = get_coordinator(hass)
        fire_times = [
            parse_fire_time(value) for value in call.data.get(const.FIELD_FIRE_TIMES, [])
        ]
        habit = await coordinator.habit_manager.async_create_habit(
            call.data[const.FIELD_HABIT_NAME],
            call.data[const.FIELD_COLOR],
            call.data[const.FIELD_DAYS],
            fire_times,
        )
        return coordinator.habit_manager.get_habit_summary(habit[const.DATA_INTERNAL_ID])

    async def handle_edit_habit(call: ServiceCall) -> ServiceResponse:
        """Handle editing a habit's name, color, days or fire times."""
        coordinator = get_coordinator(hass)
        habit_id = resolve_habit_id(coordinator, call.data[const.FIELD_HABIT_ID])

        fire_times = None
        if const.FIELD_FIRE_TIMES in call.data:
            fire_times = [parse_fire_time(v) for v in call.data[const.FIELD_FIRE_TIMES]]

        await coordinator.habit_manager.async_edit_habit(
            habit_id,
            name=call.data.get(const.FIELD_HABIT_NAME),
            color=call.data.get(const.FIELD_COLOR),
            days=call.data.get(const.FIELD_DAYS),
            fire_times=fire_times,
        )
        return coordinator.habit_manager.get_habit_summary(habit_id)

    async def handle_delete_habit(call: ServiceCall) -> None:
        """Handle deleting a habit and its reminders."""
        coordinator = get_coordinator(hass)
        habit_id = resolve_habit_id(coordinator, call.data[const.FIELD_HABIT_ID])
        await coordinator.habit_manager.async_delete_habit(habit_id)

    async def handle_mark_today(call: ServiceCall) -> ServiceResponse:
        """Handle marking today as executed (or not) for a habit."""
        coordinator = get_coordinator(hass)
        habit_id = resolve_habit_id(coordinator, call.data[const.FIELD_HABIT_ID])
        await coordinator.habit_manager.async_mark_today(
            habit_id, call.data[const.FIELD_EXECUTED]
        )
        return coordinator.habit_manager.get_habit_summary(habit_id)

    async def handle_get_habit_status(call: ServiceCall) -> ServiceResponse:
        """Return one habit's status, or every habit split by progress."""
        coordinator = get_coordinator(hass)
        habit_manager = coordinator.habit_manager
        authorized = await habit_manager.async_notifications_authorized()

        if const.FIELD_HABIT_ID in call.data:
            habit_id = resolve_habit_id(coordinator, call.data[const.FIELD_HABIT_ID])
            response: dict[str, Any] = habit_manager.get_habit_summary(habit_id)
            response[const.ATTR_NOTIFICATIONS_AUTHORIZED] = authorized
            if const.FIELD_DATE in call.data:
                day = call.data[const.FIELD_DATE]
                response[const.ATTR_DATE] = day.isoformat()
                response[const.ATTR_DATE_ORDER_TEXT] = habit_manager.day_order_text(
                    habit_id, day
                )
            return response

        return {
            const.ATTR_NOTIFICATIONS_AUTHORIZED: authorized,
            const.ATTR_IN_PROGRESS: [
                habit_manager.get_habit_summary(habit[const.DATA_INTERNAL_ID])
                for habit in habit_manager.get_habits_in_progress()
            ],
            const.ATTR_COMPLETED: [
                habit_manager.get_habit_summary(habit[const.DATA_INTERNAL_ID])
                for habit in habit_manager.get_completed_habits()
            ],
        }

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CREATE_HABIT,
        handle_create_habit,
        schema=CREATE_HABIT_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_EDIT_HABIT,
        handle_edit_habit,
        schema=EDIT_HABIT_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELETE_HABIT,
        handle_delete_habit,
        schema=DELETE_HABIT_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_MARK_TODAY,
        handle_mark_today,
        schema=MARK_TODAY_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_HABIT_STATUS,
        handle_get_habit_status,
        schema=GET_HABIT_STATUS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    const.LOGGER.info("INFO: Habit Calendar services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Habit Calendar services when unloading the integration."""
    services = [
        const.SERVICE_CREATE_HABIT,
        const.SERVICE_EDIT_HABIT,
        const.SERVICE_DELETE_HABIT,
        const.SERVICE_MARK_TODAY,
        const.SERVICE_GET_HABIT_STATUS,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Habit Calendar services have been unregistered")
