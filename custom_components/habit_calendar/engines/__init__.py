"""Engine modules for Habit Calendar integration.

Contains pure computation engines:
- challenge_engine: Challenge days, progress, closing transitions and streaks
- fanout_engine: Expansion of days x fire times into future reminder instants
"""

# Use relative imports within package to avoid mypy module resolution issues
from .challenge_engine import ChallengeEngine
from .fanout_engine import FanOutEngine

__all__ = [
    "ChallengeEngine",
    "FanOutEngine",
]
