# File: storage_manager.py
"""Handles persistent data storage for the Habit Calendar integration.

Uses Home Assistant's Storage helper to save and load habit data, ensuring the
state is preserved across restarts. Writes go through a UnitOfWork: a single
writer works on a private copy of the committed data and either commits it as
a whole or discards it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import copy
from typing import TYPE_CHECKING, Any
import uuid

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const
from .exceptions import NotFoundError, PersistenceError

if TYPE_CHECKING:
    from types import TracebackType

    from homeassistant.core import HomeAssistant

    from .type_defs import StorageData


class HabitCalendarStorageManager:
    """Manages loading, saving, and accessing data from Home Assistant's storage.

    Utilizes internal_id as the primary key for all entities. `data` is the
    committed state and serves as the read context; it is only replaced when a
    unit of work commits.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the storage manager.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: StorageData = {}  # Committed data, the read context.
        self._write_lock = asyncio.Lock()

    @staticmethod
    def get_default_structure() -> StorageData:
        """Return canonical empty data structure for fresh installations."""
        structure: StorageData = {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_LAST_MIDNIGHT_PROCESSED: None,
            },
        }
        for bucket in const.ENTITY_BUCKETS:
            structure[bucket] = {}
        return structure

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure. Buckets missing
        from older files are added.
        """
        const.LOGGER.debug("HabitCalendarStorageManager: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("No existing storage found. Initializing new data")
            self._data = self.get_default_structure()
            return

        self._data = existing_data
        for key, default in self.get_default_structure().items():
            self._data.setdefault(key, default)
        const.LOGGER.debug(
            "Loaded existing data from storage: %s",
            {bucket: len(self._data[bucket]) for bucket in const.ENTITY_BUCKETS},
        )

    @property
    def data(self) -> StorageData:
        """Retrieve the committed in-memory data."""
        return self._data

    def get_bucket(self, bucket: str) -> dict[str, Any]:
        """Return one committed entity bucket (empty dict if missing)."""
        return self._data.get(bucket, {})

    def get_habits(self) -> dict[str, Any]:
        """Get committed habits."""
        return self.get_bucket(const.DATA_HABITS)

    def get_fire_times(self) -> dict[str, Any]:
        """Get committed fire times."""
        return self.get_bucket(const.DATA_FIRE_TIMES)

    def get_notifications(self) -> dict[str, Any]:
        """Get committed notifications."""
        return self.get_bucket(const.DATA_NOTIFICATIONS)

    async def async_save(self, data: StorageData | None = None) -> None:
        """Write data (the committed data by default) to disk.

        Raises:
            PersistenceError: If the Store cannot write the data.
        """
        try:
            await self._store.async_save(self._data if data is None else data)
        except (HomeAssistantError, OSError, TypeError, ValueError) as err:
            const.LOGGER.error("Failed to save habit data: %s", err)
            raise PersistenceError(const.ERROR_SAVE_FAILED) from err
        const.LOGGER.debug("Habit data saved to storage")

    async def async_delete_storage(self) -> None:
        """Remove the storage file and clear the in-memory data."""
        await self._store.async_remove()
        self._data = self.get_default_structure()
        const.LOGGER.info("Habit Calendar storage removed: %s", self._storage_key)

    def unit_of_work(
        self, on_commit: Callable[[StorageData], None] | None = None
    ) -> UnitOfWork:
        """Open a unit of work on a copy of the committed data.

        Use as `async with storage_manager.unit_of_work() as uow:`. Leaving the
        block normally commits, leaving it with an exception rolls back.

        Args:
            on_commit: Called with the new committed data after each commit.
        """
        return UnitOfWork(self, on_commit)

    async def _async_commit(self, new_data: StorageData) -> None:
        """Persist a unit of work's data and make it the committed state."""
        await self.async_save(new_data)
        self._data = new_data


class UnitOfWork:
    """Transactional writer over the storage manager's data.

    Only one unit of work is active at a time. Records handed out by get/fetch
    belong to the private working copy and may be mutated freely until commit.
    """

    def __init__(
        self,
        storage_manager: HabitCalendarStorageManager,
        on_commit: Callable[[StorageData], None] | None = None,
    ) -> None:
        """Initialize the unit of work (the copy is taken on enter)."""
        self._storage_manager = storage_manager
        self._on_commit = on_commit
        self._data: StorageData = {}
        self._dirty = False

    async def __aenter__(self) -> UnitOfWork:
        """Acquire the writer lock and take the working copy."""
        await self._storage_manager._write_lock.acquire()  # noqa: SLF001
        self.rollback()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Commit on success, roll back on error, then release the writer lock."""
        try:
            if exc_type is not None:
                if self._dirty:
                    const.LOGGER.debug("Rolling back unit of work after %s", exc_type)
                self.rollback()
            elif self._dirty:
                await self.async_save()
        finally:
            self._storage_manager._write_lock.release()  # noqa: SLF001

    @property
    def data(self) -> StorageData:
        """The working copy."""
        return self._data

    def bucket(self, bucket: str) -> dict[str, Any]:
        """Return a bucket of the working copy, creating it if needed."""
        return self._data.setdefault(bucket, {})

    def create(self, bucket: str, record: dict[str, Any]) -> dict[str, Any]:
        """Add a record, assigning a fresh internal_id when it has none."""
        internal_id = record.setdefault(const.DATA_INTERNAL_ID, str(uuid.uuid4()))
        self.bucket(bucket)[internal_id] = record
        self._dirty = True
        return record

    def get(self, bucket: str, internal_id: str) -> dict[str, Any] | None:
        """Return a record by id, or None."""
        return self.bucket(bucket).get(internal_id)

    def require(self, bucket: str, internal_id: str) -> dict[str, Any]:
        """Return a record by id.

        Raises:
            NotFoundError: If the record does not exist.
        """
        record = self.get(bucket, internal_id)
        if record is None:
            raise NotFoundError(f"{bucket} record '{internal_id}' not found")
        return record

    def delete(self, bucket: str, internal_id: str) -> dict[str, Any] | None:
        """Remove a record by id; returns the removed record, if any."""
        record = self.bucket(bucket).pop(internal_id, None)
        if record is not None:
            self._dirty = True
        return record

    def fetch(
        self,
        bucket: str,
        predicate: Callable[[dict[str, Any]], bool] | None = None,
        sort: Callable[[dict[str, Any]], Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the bucket's records matching predicate, optionally sorted."""
        records = [
            record
            for record in self.bucket(bucket).values()
            if predicate is None or predicate(record)
        ]
        if sort is not None:
            records.sort(key=sort)
        return records

    def mark_dirty(self) -> None:
        """Flag in-place mutations of fetched records for commit."""
        self._dirty = True

    async def async_save(self) -> None:
        """Commit the working copy.

        Raises:
            PersistenceError: The write failed; the unit of work was rolled back.
        """
        try:
            await self._storage_manager._async_commit(self._data)  # noqa: SLF001
        except PersistenceError:
            self.rollback()
            raise

        self._dirty = False
        committed = self._storage_manager.data
        if self._on_commit is not None:
            self._on_commit(committed)
        # Keep working on a fresh copy so later writes stay private until committed.
        self._data = copy.deepcopy(committed)

    def rollback(self) -> None:
        """Discard every uncommitted change."""
        self._data = copy.deepcopy(self._storage_manager.data)
        self._dirty = False
