# File: store.py
"""Handles persistent data storage for the IIVG integration.

Uses Home Assistant's Storage helper to save and load the progression
snapshot, ensuring a user's curriculum survives restarts. The snapshot holds
the display name, available ids, completion log, released waves, year cursor,
dynamic entries, series averages and earned achievements.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import ProgressionState


class IIVGStore:
    """Handles persistent storage operations for IIVG data.

    Thin wrapper around Home Assistant's Store API. The in-memory cache is
    the progression state itself plus a meta block.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store[dict[str, Any]] = Store(
            hass, const.STORAGE_VERSION, storage_key
        )
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty snapshot for fresh installations.

        This is the SINGLE SOURCE OF TRUTH for the IIVG storage schema.
        """
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_LAST_SAVED: None,
            },
            const.DATA_DISPLAY_NAME: None,
            const.DATA_AVAILABLE_IDS: [],
            const.DATA_COMPLETIONS: [],
            const.DATA_RELEASED_WAVES: [],
            const.DATA_YEAR_CURSOR: 0,
            const.DATA_DYNAMIC_ENTRIES: [],
            const.DATA_SERIES_AVERAGES: {},
            const.DATA_EARNED_ACHIEVEMENTS: [],
            const.DATA_LAST_EARNED: None,
        }

    @staticmethod
    def sanitize(raw: dict[str, Any]) -> dict[str, Any]:
        """Fill missing keys and drop duplicated rows from a loaded snapshot.

        Dynamic entries are de-duplicated by id and completions by entry id;
        the first occurrence wins in both cases.
        """
        data = IIVGStore.get_default_structure()
        for key, default in data.items():
            value = raw.get(key, default)
            if isinstance(default, list) and not isinstance(value, list):
                value = []
            elif isinstance(default, dict) and not isinstance(value, dict):
                value = dict(default)
            data[key] = value

        if not isinstance(data[const.DATA_YEAR_CURSOR], int):
            data[const.DATA_YEAR_CURSOR] = 0

        seen_entries: set[str] = set()
        dynamic: list[dict[str, Any]] = []
        for entry in data[const.DATA_DYNAMIC_ENTRIES]:
            entry_id = entry.get(const.DATA_ENTRY_ID) if isinstance(entry, dict) else None
            if not entry_id or entry_id in seen_entries:
                continue
            seen_entries.add(entry_id)
            dynamic.append(entry)
        data[const.DATA_DYNAMIC_ENTRIES] = dynamic

        seen_completions: set[str] = set()
        completions: list[dict[str, Any]] = []
        for completion in data[const.DATA_COMPLETIONS]:
            entry_id = (
                completion.get(const.DATA_COMPLETION_ENTRY_ID)
                if isinstance(completion, dict)
                else None
            )
            if not entry_id or entry_id in seen_completions:
                continue
            seen_completions.add(entry_id)
            completions.append(completion)
        data[const.DATA_COMPLETIONS] = completions

        if not isinstance(data[const.DATA_LAST_EARNED], dict):
            data[const.DATA_LAST_EARNED] = None
        return data

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure.
        """
        const.LOGGER.debug("DEBUG: IIVGStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            # No existing data, create a new default structure.
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = IIVGStore.get_default_structure()
        else:
            self._data = IIVGStore.sanitize(existing_data)
            const.LOGGER.debug(
                "DEBUG: Loaded existing data from storage: %s",
                {
                    "available": len(self._data[const.DATA_AVAILABLE_IDS]),
                    "completions": len(self._data[const.DATA_COMPLETIONS]),
                    "dynamic": len(self._data[const.DATA_DYNAMIC_ENTRIES]),
                    "achievements": len(self._data[const.DATA_EARNED_ACHIEVEMENTS]),
                    "year_cursor": self._data[const.DATA_YEAR_CURSOR],
                },
            )

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def get_state(self) -> ProgressionState:
        """Return the progression part of the snapshot (without meta)."""
        return {  # type: ignore[return-value]
            key: value for key, value in self._data.items() if key != const.DATA_META
        }

    def set_state(self, state: ProgressionState) -> None:
        """Replace the progression part of the snapshot."""
        meta = self._data.get(const.DATA_META) or {
            const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION
        }
        self._data = {const.DATA_META: meta, **state}

    def get_storage_path(self) -> str:
        """Get the storage file path.

        Returns:
            str: The absolute path to the storage file.
        """
        return self._store.path

    async def async_save(self) -> None:
        """Save the current data structure to storage asynchronously.

        Raises:
            No exceptions raised - errors are logged but do not stop execution.
        """
        self._data.setdefault(const.DATA_META, {})[const.DATA_META_LAST_SAVED] = (
            datetime.now(UTC).isoformat()
        )
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Data saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s. "
                "Data contains types that cannot be converted to JSON",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data format: %s. "
                "Data structure may be corrupted",
                err,
            )
