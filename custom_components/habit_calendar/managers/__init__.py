"""Manager modules for Habit Calendar integration.

Managers apply engine decisions to stored records inside units of work and
talk to the notifier. They are stateless apart from their collaborators.
"""

from .base_manager import BaseManager
from .challenge_manager import ChallengeManager
from .day_registry import DayRegistry
from .fire_time_manager import FireTimeManager
from .habit_manager import HabitManager
from .notification_manager import NotificationManager

__all__ = [
    "BaseManager",
    "ChallengeManager",
    "DayRegistry",
    "FireTimeManager",
    "HabitManager",
    "NotificationManager",
]
