"""Base manager class for Habit Calendar managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitCalendarCoordinator


class BaseManager(ABC):
    """Base class for all Habit Calendar managers.

    Data Persistence:
    - Write methods receive the caller's UnitOfWork and never commit on their
      own; the caller decides the transaction boundary.
    - Read methods take a StorageData mapping, either the coordinator's
      committed data or a unit of work's working copy.

    Subclasses must implement:
    - async_setup(): Initialize state once the coordinator is loaded
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: HabitCalendarCoordinator
    ) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator managing this integration instance
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager.

        Called once during coordinator initialization.
        """
