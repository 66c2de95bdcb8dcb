"""Test helpers for Habit Calendar integration tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import FakeNotifier, FixedClock, FIXED_NOW

See individual modules for full documentation:
- fakes.py: In-memory notifier and controllable clock
- records.py: Builders for stored records used by pure engine tests
"""

from tests.helpers.fakes import FIXED_NOW, FakeNotifier, FixedClock
from tests.helpers.records import make_challenge, make_days, make_fire_time, make_streak

__all__ = [
    "FIXED_NOW",
    "FakeNotifier",
    "FixedClock",
    "make_challenge",
    "make_days",
    "make_fire_time",
    "make_streak",
]
