# File: config_flow.py
"""Config flow for the Habit Calendar integration.

A single instance is allowed. Habits themselves live in storage and are
managed through services; the flow only collects reminder delivery settings.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import HabitCalendarOptionsFlowHandler


class HabitCalendarConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Habit Calendar."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Collect reminder settings and create the single entry."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_reminder_inputs(self.hass, user_input)
            if not errors:
                return self.async_create_entry(
                    title=const.HABIT_CALENDAR_TITLE, data={}, options=user_input
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=fh.build_reminder_schema(user_input or {}),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return HabitCalendarOptionsFlowHandler(config_entry)
