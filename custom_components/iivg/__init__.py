# File: __init__.py
"""Initialization file for the IIVG integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and preparing the coordinator for data handling.

Key Features:
- Config entry setup and unload support.
- Coordinator initialization (catalog load, bootstrap, remote sync).
- Storage management for persistent data handling.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import IIVGDataCoordinator
from .services import async_setup_services, async_unload_services
from .store import IIVGStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for IIVG entry: %s", entry.entry_id)

    # Initialize the store to handle persistent data.
    store = IIVGStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    # Create the data coordinator for managing updates and synchronization.
    coordinator = IIVGDataCoordinator(hass, entry, store)

    try:
        # Perform the first refresh to load the catalog and bootstrap state.
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to refresh coordinator data: %s", e)
        raise

    # Store the coordinator and store in hass.data.
    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORAGE_MANAGER: store,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    const.LOGGER.info("INFO: IIVG setup complete for entry: %s", entry.entry_id)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry so option changes reach the coordinator."""
    const.LOGGER.info("INFO: Options changed, reloading IIVG entry: %s", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading IIVG entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok
