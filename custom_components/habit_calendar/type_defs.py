"""Type definitions for Habit Calendar data structures.

Entity records are plain JSON-serializable dicts stored in buckets keyed by
internal_id. TypedDict documents their fixed keys for static analysis only;
nothing here is enforced at runtime.

Dates are stored as ISO strings: calendar dates as "2026-10-19" and instants
as "2026-10-19T08:30:00-03:00".

IMPORTANT: This file must NOT import from managers, engines or coordinator to
avoid circular dependencies.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, NamedTuple, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

HabitId = str  # UUID string
ChallengeId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-10-19T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-10-19"

# Returns the current timezone-aware local datetime.
Clock = Callable[[], datetime]

# Storage root: bucket name -> {internal_id: record}, plus the meta block.
StorageData = dict[str, Any]


# =============================================================================
# Entity Types
# =============================================================================


class HabitData(TypedDict):
    """A habit being tracked."""

    internal_id: HabitId
    name: str
    color: int  # const.HabitColor value
    created_at: ISODatetime


class DayData(TypedDict):
    """A calendar day, shared by every habit tracked on that date."""

    internal_id: str
    date: ISODate


class HabitDayData(TypedDict):
    """Execution record of one habit on one calendar day.

    date duplicates the referenced Day's date; Day records never change.
    """

    internal_id: str
    day_id: str
    date: ISODate
    habit_id: HabitId
    challenge_id: ChallengeId
    was_executed: bool
    updated_at: ISODatetime | None


class ChallengeData(TypedDict):
    """A commitment period of a habit, made of HabitDay records."""

    internal_id: ChallengeId
    habit_id: HabitId
    from_date: ISODate
    to_date: ISODate
    is_closed: bool
    created_at: ISODatetime


class StreakData(TypedDict):
    """An unbroken run of executed days inside a challenge (an "offensive")."""

    internal_id: str
    challenge_id: ChallengeId
    habit_id: HabitId
    from_date: ISODate
    to_date: ISODate
    created_at: ISODatetime
    updated_at: ISODatetime


class FireTimeData(TypedDict):
    """A daily reminder time of a habit."""

    internal_id: str
    habit_id: HabitId
    hour: int
    minute: int
    created_at: ISODatetime


class NotificationData(TypedDict):
    """A concrete reminder instance tracked against the notifier."""

    internal_id: str
    external_id: str
    habit_id: HabitId
    fire_time_id: str
    habit_day_id: str
    fire_date: ISODatetime
    was_scheduled: bool


# =============================================================================
# Value objects
# =============================================================================


class CompletionProgress(NamedTuple):
    """Challenge progress as (past, total) day counts."""

    past: int
    total: int


class FireInstant(NamedTuple):
    """A concrete future instant derived from one HabitDay and one FireTime."""

    habit_day_id: str
    fire_time_id: str
    fire_at: datetime


class ReminderContent(TypedDict):
    """Content submitted to the notifier for one reminder."""

    title: str
    subtitle: str
    body: str
    tag: str
    habit_id: HabitId
