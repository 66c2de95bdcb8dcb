# File: utils/__init__.py
"""Pure Python utilities for Habit Calendar.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Date/time normalization, local-day arithmetic, ordinals

Usage:
    from . import dt_utils
    from .dt_utils import dt_to_date
"""

from . import dt_utils

__all__ = ["dt_utils"]
