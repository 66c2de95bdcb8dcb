# File: flow_helpers.py
"""Helpers for the Habit Calendar integration's Config and Options flow.

Both flows show the same reminder settings form:
- validate_reminder_inputs(hass, user_input) -> errors_dict (empty = valid)
- build_reminder_schema(defaults) -> vol.Schema
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant
from homeassistant.helpers import selector

from . import const
from .notifier import split_notify_service


def build_reminder_schema(defaults: dict[str, Any]) -> vol.Schema:
    """Build the reminder settings schema, pre-filled with defaults."""
    return vol.Schema(
        {
            vol.Optional(
                const.CONF_NOTIFY_SERVICE,
                default=defaults.get(
                    const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
                ),
            ): selector.TextSelector(),
            vol.Optional(
                const.CONF_REMINDER_SUBTITLE,
                default=defaults.get(
                    const.CONF_REMINDER_SUBTITLE, const.DEFAULT_REMINDER_SUBTITLE
                ),
            ): selector.TextSelector(),
        }
    )


def validate_reminder_inputs(
    hass: HomeAssistant, user_input: dict[str, Any]
) -> dict[str, str]:
    """Flag a notify service that does not exist; "" (persistent) is always valid."""
    errors: dict[str, str] = {}
    service = user_input.get(const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE)
    if service and not hass.services.has_service(*split_notify_service(service)):
        errors[const.CONF_NOTIFY_SERVICE] = const.CFOP_ERROR_INVALID_NOTIFY_SERVICE
    return errors
