"""Tests for ChallengeManager - challenges, HabitDays and streaks in storage."""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from datetime import date, timedelta

import pytest

from custom_components.habit_calendar import const
from custom_components.habit_calendar.coordinator import HabitCalendarCoordinator
from custom_components.habit_calendar.exceptions import (
    ChallengeOverlapError,
    HabitCalendarError,
    NotFoundError,
)
from tests.helpers import FIXED_NOW

TODAY = date(2026, 10, 19)


def _dates(*offsets: int) -> list[date]:
    return [TODAY + timedelta(days=offset) for offset in offsets]


async def test_create_challenge_dedupes_dates(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Repeated dates become one HabitDay; the range spans min..max."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(
            uow, "h1", [*_dates(2, 0, 1), "2026-10-19"], FIXED_NOW
        )

    days = manager.get_days(coordinator.data, challenge[const.DATA_INTERNAL_ID])
    assert [d[const.DATA_HABIT_DAY_DATE] for d in days] == [
        "2026-10-19",
        "2026-10-20",
        "2026-10-21",
    ]
    stored = coordinator.data[const.DATA_CHALLENGES][challenge[const.DATA_INTERNAL_ID]]
    assert stored[const.DATA_CHALLENGE_FROM_DATE] == "2026-10-19"
    assert stored[const.DATA_CHALLENGE_TO_DATE] == "2026-10-21"
    assert stored[const.DATA_CHALLENGE_IS_CLOSED] is False


async def test_days_are_shared_between_habits(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Two habits on the same date reference the same Day."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        manager.create_challenge(uow, "h1", _dates(0), FIXED_NOW)
        manager.create_challenge(uow, "h2", _dates(0), FIXED_NOW)

    assert len(coordinator.data[const.DATA_DAYS]) == 1
    day_ids = {
        d[const.DATA_HABIT_DAY_DAY_ID]
        for d in coordinator.data[const.DATA_HABIT_DAYS].values()
    }
    assert len(day_ids) == 1


async def test_create_challenge_requires_days(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """An empty plan is refused."""
    with pytest.raises(HabitCalendarError):
        async with coordinator.unit_of_work() as uow:
            coordinator.challenge_manager.create_challenge(uow, "h1", [], FIXED_NOW)


async def test_open_challenges_cannot_overlap(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """A second open challenge over the same dates is refused."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        manager.create_challenge(uow, "h1", _dates(0, 1, 2), FIXED_NOW)

    with pytest.raises(ChallengeOverlapError):
        async with coordinator.unit_of_work() as uow:
            manager.create_challenge(uow, "h1", _dates(2, 3), FIXED_NOW)

    assert len(coordinator.data[const.DATA_CHALLENGES]) == 1


async def test_close_challenge_drops_today_onward(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Closing keeps past days, deletes the rest and prunes their Days."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(-2, -1, 0, 1), FIXED_NOW)
        removed = manager.close_challenge(uow, challenge, TODAY)

    assert len(removed) == 2
    stored = coordinator.data[const.DATA_CHALLENGES][challenge[const.DATA_INTERNAL_ID]]
    assert stored[const.DATA_CHALLENGE_IS_CLOSED] is True
    assert stored[const.DATA_CHALLENGE_TO_DATE] == "2026-10-18"
    assert sorted(
        d[const.DATA_DAY_DATE] for d in coordinator.data[const.DATA_DAYS].values()
    ) == ["2026-10-17", "2026-10-18"]


async def test_close_future_challenge_deletes_it(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """A challenge with nothing in the past disappears on close."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(3, 4), FIXED_NOW)
        manager.close_challenge(uow, challenge, TODAY)

    assert coordinator.data[const.DATA_CHALLENGES] == {}
    assert coordinator.data[const.DATA_HABIT_DAYS] == {}
    assert coordinator.data[const.DATA_DAYS] == {}


async def test_close_trims_streaks(coordinator: HabitCalendarCoordinator) -> None:
    """A streak running into today is cut back to the new end date."""
    manager = coordinator.challenge_manager
    yesterday = TODAY - timedelta(days=1)

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(-1, 0, 1), FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, yesterday, FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, TODAY, FIXED_NOW)
        manager.close_challenge(uow, challenge, TODAY)

    (streak,) = coordinator.data[const.DATA_STREAKS].values()
    assert streak[const.DATA_STREAK_FROM_DATE] == "2026-10-18"
    assert streak[const.DATA_STREAK_TO_DATE] == "2026-10-18"


async def test_edit_days_replaces_current_and_future(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Editing closes the current and upcoming challenges, then plans anew."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        current = manager.create_challenge(uow, "h1", _dates(-1, 0, 1), FIXED_NOW)
        upcoming = manager.create_challenge(uow, "h1", _dates(5, 6), FIXED_NOW)
        new = manager.edit_days(uow, "h1", _dates(0, 2, 4), TODAY, FIXED_NOW)

    challenges = coordinator.data[const.DATA_CHALLENGES]
    assert upcoming[const.DATA_INTERNAL_ID] not in challenges
    assert challenges[current[const.DATA_INTERNAL_ID]][const.DATA_CHALLENGE_IS_CLOSED]
    assert challenges[current[const.DATA_INTERNAL_ID]][const.DATA_CHALLENGE_TO_DATE] == (
        "2026-10-18"
    )
    assert (
        manager.get_current_challenge(coordinator.data, "h1", TODAY)[
            const.DATA_INTERNAL_ID
        ]
        == new[const.DATA_INTERNAL_ID]
    )


async def test_close_past_challenges(coordinator: HabitCalendarCoordinator) -> None:
    """Only open challenges that ended before today are closed."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        ended = manager.create_challenge(uow, "h1", _dates(-3, -2), FIXED_NOW)
        running = manager.create_challenge(uow, "h2", _dates(-1, 0, 1), FIXED_NOW)

    async with coordinator.unit_of_work() as uow:
        assert manager.close_past_challenges(uow, TODAY) == 1
        assert manager.close_past_challenges(uow, TODAY) == 0

    challenges = coordinator.data[const.DATA_CHALLENGES]
    assert challenges[ended[const.DATA_INTERNAL_ID]][const.DATA_CHALLENGE_IS_CLOSED]
    assert not challenges[running[const.DATA_INTERNAL_ID]][const.DATA_CHALLENGE_IS_CLOSED]


async def test_mark_builds_and_retracts_streak(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Consecutive marks extend one streak; un-marking today shortens it."""
    manager = coordinator.challenge_manager
    yesterday = TODAY - timedelta(days=1)

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(-1, 0, 1), FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, yesterday, FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, TODAY, FIXED_NOW)

    data = coordinator.data
    stored = data[const.DATA_CHALLENGES][challenge[const.DATA_INTERNAL_ID]]
    offensive = manager.get_current_offensive(data, stored, TODAY)
    assert offensive[const.DATA_STREAK_FROM_DATE] == "2026-10-18"
    assert offensive[const.DATA_STREAK_TO_DATE] == "2026-10-19"
    assert manager.get_completion_progress(data, stored, TODAY) == (2, 3)

    async with coordinator.unit_of_work() as uow:
        challenge = uow.get(const.DATA_CHALLENGES, challenge[const.DATA_INTERNAL_ID])
        manager.mark_current_day_as_executed(
            uow, challenge, TODAY, FIXED_NOW, executed=False
        )

    data = coordinator.data
    (streak,) = data[const.DATA_STREAKS].values()
    assert streak[const.DATA_STREAK_TO_DATE] == "2026-10-18"
    assert manager.get_executed_count(data, "h1") == 1


async def test_unmark_single_day_streak_deletes_it(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """A streak that only covered today is removed when today is un-marked."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(0, 1), FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, TODAY, FIXED_NOW)
        assert len(uow.fetch(const.DATA_STREAKS)) == 1
        manager.mark_current_day_as_executed(
            uow, challenge, TODAY, FIXED_NOW, executed=False
        )

    assert coordinator.data[const.DATA_STREAKS] == {}


async def test_mark_unplanned_day_inside_range(
    coordinator: HabitCalendarCoordinator,
) -> None:
    """Today inside the range but not planned gets a HabitDay on marking."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(-1, 1), FIXED_NOW)
        habit_day = manager.mark_current_day_as_executed(
            uow, challenge, TODAY, FIXED_NOW
        )

    assert habit_day[const.DATA_HABIT_DAY_DATE] == "2026-10-19"
    assert habit_day[const.DATA_HABIT_DAY_WAS_EXECUTED] is True
    assert len(manager.get_habit_days(coordinator.data, "h1")) == 3


async def test_mark_outside_range(coordinator: HabitCalendarCoordinator) -> None:
    """Marking a day the challenge does not cover fails."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(1, 2), FIXED_NOW)

    with pytest.raises(NotFoundError):
        async with coordinator.unit_of_work() as uow:
            manager.mark_current_day_as_executed(uow, challenge, TODAY, FIXED_NOW)


async def test_execution_statistics(coordinator: HabitCalendarCoordinator) -> None:
    """Executed count and percentage cover every challenge of the habit."""
    manager = coordinator.challenge_manager

    async with coordinator.unit_of_work() as uow:
        challenge = manager.create_challenge(uow, "h1", _dates(-3, -2, -1, 0, 1), FIXED_NOW)
        manager.mark_current_day_as_executed(uow, challenge, TODAY, FIXED_NOW)

    assert manager.get_executed_count(coordinator.data, "h1") == 1
    assert manager.get_execution_percentage(coordinator.data, "h1") == 20.0
    assert manager.get_execution_percentage(coordinator.data, "unknown") == 0.0
    assert manager.is_in_progress(coordinator.data, "h1", TODAY)
