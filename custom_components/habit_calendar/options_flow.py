# File: options_flow.py
"""Options flow for the Habit Calendar integration.

Lets the user change the notify service and the reminder subtitle. The entry
is reloaded by the update listener registered in __init__.py.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class HabitCalendarOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for reminder delivery settings."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show and save the reminder settings."""
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_reminder_inputs(self.hass, user_input)
            if not errors:
                const.LOGGER.debug("DEBUG: Saving options %s", user_input)
                return self.async_create_entry(title="", data=user_input)

        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=fh.build_reminder_schema(
                user_input or dict(self.config_entry.options)
            ),
            errors=errors,
        )
