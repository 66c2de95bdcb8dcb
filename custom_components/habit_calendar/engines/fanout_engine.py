"""Fan-Out Engine - Pure logic for expanding habit reminders into instants.

A habit's reminders are the cross product of its tracked days and its daily
fire times. This engine computes which of those instants still lie in the
future and what each reminder says.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant state access.
`now` is always passed in. Persisting Notification records and talking to the
notifier belong in NotificationManager.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..type_defs import FireInstant, ReminderContent
from ..utils.dt_utils import dt_combine_local

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from ..type_defs import FireTimeData, HabitData, HabitDayData


class FanOutEngine:
    """Pure logic engine for reminder fan-out.

    All methods are static - no instance state.
    """

    @staticmethod
    def compute_fire_instants(
        habit_days: Iterable[HabitDayData],
        fire_times: Iterable[FireTimeData],
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> list[FireInstant]:
        """Expand days x fire times into the instants strictly after now.

        Args:
            habit_days: The habit's days in its current and future challenges
            fire_times: The habit's daily reminder times
            now: Timezone-aware reference instant
            tz: Timezone the days are local to (defaults to dt_utils default)

        Returns:
            FireInstant tuples sorted by instant, then by fire time id.
        """
        fire_times = list(fire_times)
        instants: list[FireInstant] = []

        for habit_day in habit_days:
            day = date.fromisoformat(habit_day[const.DATA_HABIT_DAY_DATE])
            for fire_time in fire_times:
                fire_at = dt_combine_local(
                    day,
                    fire_time[const.DATA_FIRE_TIME_HOUR],
                    fire_time[const.DATA_FIRE_TIME_MINUTE],
                    tz,
                )
                if fire_at <= now:
                    continue
                instants.append(
                    FireInstant(
                        habit_day_id=habit_day[const.DATA_INTERNAL_ID],
                        fire_time_id=fire_time[const.DATA_INTERNAL_ID],
                        fire_at=fire_at,
                    )
                )

        instants.sort(key=lambda instant: (instant.fire_at, instant.fire_time_id))
        return instants

    @staticmethod
    def build_notification_tag(habit_id: str) -> str:
        """Build the tag that groups a habit's reminders on the device.

        Reminders with the same tag replace each other instead of stacking.
        The identifier is truncated to 8 characters to stay well under
        Apple's 64-byte collapse-id limit.
        """
        return f"{const.NOTIFY_TAG_PREFIX}-{habit_id[:8]}"

    @staticmethod
    def build_reminder_content(
        habit: HabitData,
        order_text: str,
        subtitle: str = const.DEFAULT_REMINDER_SUBTITLE,
    ) -> ReminderContent:
        """Build the reminder shown for one day of a habit.

        Args:
            habit: The habit being reminded
            order_text: Day order sentence, e.g. "3rd day of the challenge."
            subtitle: Prompt line shown under the title
        """
        body = const.REMINDER_BODY_TEXT
        if order_text:
            body = f"{order_text} {body}"

        habit_id = habit[const.DATA_INTERNAL_ID]
        return ReminderContent(
            title=habit[const.DATA_HABIT_NAME],
            subtitle=subtitle,
            body=body,
            tag=FanOutEngine.build_notification_tag(habit_id),
            habit_id=habit_id,
        )
