# File: notification_action_handler.py
"""Handle reminder actions from HA companion notifications.

Reminders sent through a notify service carry Yes/No buttons. When the user
taps one, the companion app fires a notification action event and this module
marks today's day of the habit as executed or not.

Action strings are pipe-separated: "ACTION|entry_id[:8]|habit_id".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError

from . import const

if TYPE_CHECKING:
    from homeassistant.core import Event, HomeAssistant

    from .coordinator import HabitCalendarCoordinator


@dataclass
class ParsedAction:
    """Notification action string split into its parts.

    Attributes:
        action_type: ACTION_MARK_EXECUTED or ACTION_MARK_NOT_EXECUTED
        entry_id: The config entry ID, truncated to 8 characters
        habit_id: The internal ID of the habit
    """

    action_type: str
    entry_id: str
    habit_id: str

    @property
    def executed(self) -> bool:
        """Whether the action marks today as executed."""
        return self.action_type == const.ACTION_MARK_EXECUTED


def parse_notification_action(action_field: str | None) -> ParsedAction | None:
    """Parse a notification action string.

    Returns:
        ParsedAction if the string is one of ours, None otherwise. Actions of
        other integrations arrive on the same event and are ignored quietly.
    """
    if not action_field:
        return None

    parts = action_field.split(const.ACTION_SEPARATOR)
    if parts[0] not in (const.ACTION_MARK_EXECUTED, const.ACTION_MARK_NOT_EXECUTED):
        return None

    if len(parts) != 3 or not all(parts):
        const.LOGGER.warning("Invalid action string format: %s", action_field)
        return None

    return ParsedAction(action_type=parts[0], entry_id=parts[1], habit_id=parts[2])


def _find_coordinator(
    hass: HomeAssistant, entry_prefix: str
) -> HabitCalendarCoordinator | None:
    for entry_id, entry_data in hass.data.get(const.DOMAIN, {}).items():
        if entry_id.startswith(entry_prefix):
            return entry_data[const.COORDINATOR]
    return None


async def async_handle_notification_action(hass: HomeAssistant, event: Event) -> None:
    """Mark today from a tapped reminder button.

    Args:
        hass: Home Assistant instance
        event: Event containing the notification action data
    """
    parsed = parse_notification_action(event.data.get(const.NOTIFY_ACTION))
    if parsed is None:
        return

    coordinator = _find_coordinator(hass, parsed.entry_id)
    if coordinator is None:
        const.LOGGER.error(
            "Habit Calendar config entry not found for truncated ID: %s",
            parsed.entry_id,
        )
        return

    try:
        await coordinator.habit_manager.async_mark_today(
            parsed.habit_id, parsed.executed
        )
    except HomeAssistantError as err:
        const.LOGGER.error(
            "Failed processing notification action %s for habit %s: %s",
            parsed.action_type,
            parsed.habit_id,
            err,
        )
        return

    const.LOGGER.info(
        "INFO: Habit %s marked %s from a reminder",
        parsed.habit_id,
        "executed" if parsed.executed else "not executed",
    )
