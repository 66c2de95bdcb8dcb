# File: notifier.py
"""Reminder delivery for the Habit Calendar integration.

ReminderNotifier is the asynchronous contract the Sync Scheduler talks to:
reminders are submitted under a caller-chosen identifier, replace any pending
reminder with the same identifier, and can be cancelled by identifier.

HomeAssistantReminderNotifier arms one point-in-time timer per reminder and,
when it fires, calls the configured notify service (or creates a persistent
notification when none is configured). Timers live in memory only, so the
scheduler re-submits missing reminders on startup. Notify-service reminders
carry Yes/No buttons handled by notification_action_handler.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_point_in_time

from . import const
from .exceptions import SchedulingError

if TYPE_CHECKING:
    from datetime import datetime

    from .type_defs import ReminderContent


# =============================================================================
# Module-level helper for testability
# =============================================================================


async def async_send_notification(
    hass: HomeAssistant,
    service: str,
    title: str,
    message: str,
    extra_data: dict[str, Any] | None = None,
) -> None:
    """Send a notification via Home Assistant service call.

    This is a module-level function that can be easily mocked in tests.

    Args:
        hass: Home Assistant instance
        service: "notify.service_name", a bare notify service name, or "" for
            a persistent notification
        title: Notification title
        message: Notification message
        extra_data: Optional extra data (e.g., tag, subtitle)
    """
    if not service:
        payload: dict[str, Any] = {
            const.NOTIFY_TITLE: title,
            const.NOTIFY_MESSAGE: message,
        }
        if extra_data and const.NOTIFY_TAG in extra_data:
            payload[const.NOTIFY_NOTIFICATION_ID] = extra_data[const.NOTIFY_TAG]
        await hass.services.async_call(
            const.NOTIFY_PERSISTENT_NOTIFICATION,
            const.NOTIFY_CREATE,
            payload,
            blocking=True,
        )
        return

    domain, svc = split_notify_service(service)
    payload = {const.NOTIFY_TITLE: title, const.NOTIFY_MESSAGE: message}
    if extra_data:
        payload[const.NOTIFY_DATA] = dict(extra_data)

    const.LOGGER.debug(
        "async_send_notification: %s.%s - title='%s', message='%s'",
        domain,
        svc,
        title,
        message,
    )
    await hass.services.async_call(domain, svc, payload, blocking=True)


def split_notify_service(service: str) -> tuple[str, str]:
    """Split "notify.mobile_app_x" into its domain and service parts."""
    if "." in service:
        domain, svc = service.split(".", 1)
        return domain, svc
    return const.NOTIFY_DOMAIN, service


def build_day_prompt_actions(entry_id: str, habit_id: str) -> list[dict[str, str]]:
    """Build the Yes/No buttons that mark today from a reminder.

    Action strings are pipe-separated: "ACTION|entry_id[:8]|habit_id".

    Args:
        entry_id: Config entry the habit belongs to
        habit_id: The internal ID of the habit

    Returns:
        List of action dictionaries with 'action' and 'title' keys.
    """
    suffix = const.ACTION_SEPARATOR.join(
        (entry_id[: const.ACTION_ENTRY_ID_LENGTH], habit_id)
    )
    return [
        {
            const.NOTIFY_ACTION: f"{const.ACTION_MARK_EXECUTED}|{suffix}",
            const.NOTIFY_TITLE: const.ACTION_TITLE_EXECUTED,
        },
        {
            const.NOTIFY_ACTION: f"{const.ACTION_MARK_NOT_EXECUTED}|{suffix}",
            const.NOTIFY_TITLE: const.ACTION_TITLE_NOT_EXECUTED,
        },
    ]


class ReminderNotifier(ABC):
    """Asynchronous, best-effort reminder scheduler."""

    @abstractmethod
    async def async_request_authorization(self) -> bool:
        """Ask for permission to deliver reminders; return whether it is granted."""

    @abstractmethod
    async def async_get_authorization_status(self) -> bool:
        """Return whether reminders can currently be delivered."""

    @abstractmethod
    async def async_submit(
        self, external_id: str, content: ReminderContent, fire_at: datetime
    ) -> None:
        """Schedule a reminder, replacing a pending one with the same id.

        Raises:
            SchedulingError: If the reminder was refused.
        """

    @abstractmethod
    async def async_cancel(self, external_ids: Iterable[str]) -> None:
        """Cancel pending reminders; unknown ids are ignored."""

    @abstractmethod
    async def async_pending_ids(self) -> list[str]:
        """Return the ids of reminders that have not been delivered yet."""

    async def async_shutdown(self) -> None:
        """Release resources when the integration unloads."""


class HomeAssistantReminderNotifier(ReminderNotifier):
    """Delivers reminders through Home Assistant timers and notify services."""

    def __init__(
        self, hass: HomeAssistant, notify_service: str = "", entry_id: str = ""
    ) -> None:
        """Initialize the notifier.

        Args:
            hass: Home Assistant instance
            notify_service: Notify service to deliver through; "" selects
                persistent notifications
            entry_id: Config entry id embedded in the reminder action buttons
        """
        self.hass = hass
        self.notify_service = notify_service
        self.entry_id = entry_id
        self._timers: dict[str, CALLBACK_TYPE] = {}

    async def async_request_authorization(self) -> bool:
        """Home Assistant cannot prompt; permission equals service availability."""
        authorized = await self.async_get_authorization_status()
        if not authorized:
            const.LOGGER.warning(
                "WARNING: Notification service '%s' not available - reminders will "
                "not be delivered until the service is set up",
                self.notify_service,
            )
        return authorized

    async def async_get_authorization_status(self) -> bool:
        """Return whether the configured delivery service exists."""
        if not self.notify_service:
            return self.hass.services.has_service(
                const.NOTIFY_PERSISTENT_NOTIFICATION, const.NOTIFY_CREATE
            )
        return self.hass.services.has_service(*split_notify_service(self.notify_service))

    async def async_submit(
        self, external_id: str, content: ReminderContent, fire_at: datetime
    ) -> None:
        """Arm a timer that delivers the reminder at fire_at."""
        if fire_at.tzinfo is None:
            raise SchedulingError(external_id, "fire time has no timezone")

        self._cancel_timer(external_id)

        async def _async_deliver(_now: datetime) -> None:
            self._timers.pop(external_id, None)
            await self._async_deliver(external_id, content)

        self._timers[external_id] = async_track_point_in_time(
            self.hass, _async_deliver, fire_at
        )
        const.LOGGER.debug(
            "DEBUG: Reminder %s armed for %s", external_id, fire_at.isoformat()
        )

    async def async_cancel(self, external_ids: Iterable[str]) -> None:
        """Disarm the timers of the given reminders."""
        cancelled = sum(1 for external_id in external_ids if self._cancel_timer(external_id))
        if cancelled:
            const.LOGGER.debug("DEBUG: Cancelled %s pending reminder(s)", cancelled)

    async def async_pending_ids(self) -> list[str]:
        """Return the ids with an armed timer."""
        return list(self._timers)

    async def async_shutdown(self) -> None:
        """Disarm every timer."""
        await self.async_cancel(list(self._timers))

    def _cancel_timer(self, external_id: str) -> bool:
        unsub = self._timers.pop(external_id, None)
        if unsub is None:
            return False
        unsub()
        return True

    async def _async_deliver(self, external_id: str, content: ReminderContent) -> None:
        """Send a due reminder; delivery is best effort."""
        extra_data: dict[str, Any] = {
            const.NOTIFY_TAG: content["tag"],
            const.NOTIFY_SUBTITLE: content["subtitle"],
            const.NOTIFY_HABIT_ID: content["habit_id"],
        }
        message = content["body"]
        if self.notify_service:
            # Persistent notifications cannot carry buttons
            extra_data[const.NOTIFY_ACTIONS] = build_day_prompt_actions(
                self.entry_id, content["habit_id"]
            )
        else:
            message = f"{content['subtitle']}\n\n{message}"

        try:
            await async_send_notification(
                self.hass,
                self.notify_service,
                content["title"],
                message,
                extra_data,
            )
        except HomeAssistantError as err:
            const.LOGGER.warning(
                "WARNING: Reminder %s for habit %s was not delivered: %s",
                external_id,
                content["habit_id"],
                err,
            )
            return
        const.LOGGER.debug("DEBUG: Reminder %s delivered", external_id)
