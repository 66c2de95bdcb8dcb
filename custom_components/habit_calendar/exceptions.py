# File: exceptions.py
"""Error taxonomy for the Habit Calendar integration.

Every error derives from HomeAssistantError so service calls surface them to
the caller without extra wrapping.
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class HabitCalendarError(HomeAssistantError):
    """Base class for Habit Calendar errors."""


class AlreadyExistsError(HabitCalendarError):
    """Raised when creating an entity whose natural key is already taken."""


class DayAlreadyExistsError(AlreadyExistsError):
    """Raised when a Day record already exists for a calendar date."""


class InvalidTimeComponentsError(HabitCalendarError, ValueError):
    """Raised when a fire time hour or minute is out of range.

    Attributes:
        hour: The rejected hour (None when the input could not be parsed)
        minute: The rejected minute
    """

    def __init__(
        self, hour: int | None, minute: int | None, message: str | None = None
    ) -> None:
        """Initialize InvalidTimeComponentsError."""
        self.hour = hour
        self.minute = minute
        super().__init__(message or f"Invalid fire time {hour}:{minute}")


class NotFoundError(HabitCalendarError):
    """Raised when an edit or delete targets a missing entity."""


class PersistenceError(HabitCalendarError):
    """Raised when committing a unit of work fails.

    The unit of work is rolled back before this is raised, so callers can retry.
    """


class SchedulingError(HabitCalendarError):
    """Raised by a notifier that refuses a reminder submission.

    Attributes:
        external_id: Identifier of the refused reminder
    """

    def __init__(self, external_id: str, reason: str) -> None:
        """Initialize SchedulingError."""
        self.external_id = external_id
        self.reason = reason
        super().__init__(f"Reminder {external_id} was not scheduled: {reason}")


class ChallengeOverlapError(HabitCalendarError):
    """Raised when a new challenge would overlap an open one."""


class InvariantViolationError(HabitCalendarError):
    """Raised when stored data breaks an invariant the engine relies on.

    These are programming errors, not recoverable user errors.
    """
