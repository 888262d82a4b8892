# File: coordinator.py
"""Coordinator for the IIVG integration.

Owns the loaded catalog, the live progression state and the optional remote
completion store. There is no polling: entities are refreshed whenever the
ProgressionManager mutates state.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .helpers.catalog_helpers import Catalog, load_catalog
from .helpers.remote_store import RemoteCompletionStore
from .managers.progression_manager import ProgressionManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .store import IIVGStore
    from .type_defs import ProgressionState


class IIVGDataCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator for one IIVG curriculum."""

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: IIVGStore,
    ) -> None:
        """Initialize the IIVGDataCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.store = store
        self.catalog = Catalog()
        self._state: ProgressionState = store.get_state()
        self.remote_store = self._build_remote_store()
        self.progression_manager = ProgressionManager(hass, self)

    # -------------------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------------------

    @property
    def state(self) -> ProgressionState:
        """Return the live progression state."""
        return self._state

    @property
    def catalog_path(self) -> Path:
        """Return the configured catalog root."""
        configured = self.config_entry.data.get(const.CONF_CATALOG_PATH)
        if configured:
            return Path(configured)
        return Path(self.hass.config.path(const.DEFAULT_CATALOG_DIR))

    def _build_remote_store(self) -> RemoteCompletionStore | None:
        """Build the remote client; an empty URL in options disables the remote."""
        options = self.config_entry.options
        base_url = options.get(
            const.CONF_REMOTE_URL, self.config_entry.data.get(const.CONF_REMOTE_URL)
        )
        if not base_url:
            return None
        token = options.get(
            const.CONF_REMOTE_TOKEN,
            self.config_entry.data.get(const.CONF_REMOTE_TOKEN),
        )
        return RemoteCompletionStore(
            async_get_clientsession(self.hass), base_url, token or None
        )

    # -------------------------------------------------------------------------------------
    # First Refresh + Updates
    # -------------------------------------------------------------------------------------

    async def async_config_entry_first_refresh(self) -> None:
        """Load the catalog, bootstrap the state and schedule a remote sync."""
        catalog_root = self.catalog_path
        self.catalog = await self.hass.async_add_executor_job(
            load_catalog, catalog_root
        )
        if self.catalog.is_empty:
            const.LOGGER.warning(
                "WARNING: No catalog entries found under %s", catalog_root
            )
        else:
            const.LOGGER.info(
                "INFO: Loaded %s catalog entries (%s-%s) from %s",
                len(self.catalog.all_entries),
                self.catalog.min_year,
                self.catalog.max_year,
                catalog_root,
            )

        await self.progression_manager.async_setup()

        if self._state.get(const.DATA_DISPLAY_NAME) is None:
            configured_name = self.config_entry.data.get(const.CONF_DISPLAY_NAME)
            if configured_name:
                self._state[const.DATA_DISPLAY_NAME] = configured_name

        self.progression_manager.bootstrap()
        self._persist()

        await super().async_config_entry_first_refresh()

        if self.remote_store is not None:
            self.config_entry.async_create_background_task(
                self.hass,
                self.async_sync_remote(raise_on_error=False),
                f"{const.DOMAIN}_initial_remote_sync",
            )

    async def _async_update_data(self) -> dict[str, Any]:
        """Return the live state; nothing is fetched on refresh."""
        return self._state

    async def async_sync_remote(self, raise_on_error: bool = True) -> int:
        """Pull remote completions and merge them into the local state.

        Returns the number of merged completions.

        Raises:
            HomeAssistantError: No remote store is configured, or the fetch
                failed while raise_on_error is True.
        """
        if self.remote_store is None:
            raise HomeAssistantError("No remote store is configured")
        try:
            remote_completions = await self.remote_store.async_fetch_completions()
        except (HomeAssistantError, aiohttp.ClientError, TimeoutError) as err:
            if raise_on_error:
                raise HomeAssistantError(f"Remote sync failed: {err}") from err
            const.LOGGER.warning(
                "WARNING: Remote store - Failed to fetch completions: %s", err
            )
            return 0
        return await self.progression_manager.async_rehydrate(remote_completions)

    # -------------------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------------------

    def _persist(self) -> None:
        """Save to persistent storage."""
        self.store.set_state(self._state)
        self.hass.add_job(self.store.async_save)

    def _persist_and_update(self) -> None:
        """Save to persistent storage and refresh entities."""
        self._persist()
        self.async_set_updated_data(self._state)
