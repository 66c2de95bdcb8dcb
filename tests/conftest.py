"""Shared fixtures for Habit Calendar tests."""

from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.habit_calendar.const import DOMAIN, HABIT_CALENDAR_TITLE
from custom_components.habit_calendar.coordinator import HabitCalendarCoordinator
from custom_components.habit_calendar.storage_manager import (
    HabitCalendarStorageManager,
)
from custom_components.habit_calendar.utils import dt_utils
from tests.helpers import FakeNotifier, FixedClock

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

COORDINATOR_MODULE = "custom_components.habit_calendar.coordinator"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None]:
    """Keep the dt_utils default zone at UTC; entry setup changes it."""
    original = dt_utils.get_default_timezone()
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry with default reminder options."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=HABIT_CALENDAR_TITLE,
        data={},
        options={},
        entry_id="habit_calendar_test_entry",
    )


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    """Return an authorized in-memory notifier."""
    return FakeNotifier()


@pytest.fixture
def clock() -> FixedClock:
    """Return a clock frozen on Monday 2026-10-19 09:00 UTC."""
    return FixedClock()


@pytest.fixture
async def storage_manager(hass: HomeAssistant) -> HabitCalendarStorageManager:
    """Return an initialized storage manager backed by the mocked Store."""
    manager = HabitCalendarStorageManager(hass)
    await manager.async_initialize()
    return manager


@pytest.fixture
async def coordinator(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    storage_manager: HabitCalendarStorageManager,
    fake_notifier: FakeNotifier,
    clock: FixedClock,
) -> AsyncGenerator[HabitCalendarCoordinator]:
    """Return a set-up coordinator using the fake notifier and fixed clock."""
    mock_config_entry.add_to_hass(hass)
    coord = HabitCalendarCoordinator(
        hass,
        mock_config_entry,
        storage_manager,
        notifier=fake_notifier,
        clock=clock,
    )
    await coord.async_setup()
    yield coord
    await hass.async_block_till_done()
    await coord.async_shutdown()


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    fake_notifier: FakeNotifier,
    clock: FixedClock,
) -> AsyncGenerator[MockConfigEntry]:
    """Set up the integration through its config entry."""
    mock_config_entry.add_to_hass(hass)
    with (
        patch(
            f"{COORDINATOR_MODULE}.HomeAssistantReminderNotifier",
            return_value=fake_notifier,
        ),
        patch(f"{COORDINATOR_MODULE}.dt_now_local", clock),
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    yield mock_config_entry

    await hass.async_block_till_done()
    if mock_config_entry.state is ConfigEntryState.LOADED:
        await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()
