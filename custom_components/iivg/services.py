# File: services.py
"""Defines custom services for the IIVG integration.

These services expose the progression workflows to scripts, automations and
dashboards: completing courses, adding electives, acknowledging and rendering
achievements, renaming the student and syncing with the remote store.
"""

from __future__ import annotations

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import IIVGDataCoordinator
from .engines.progression_engine import ProgressionEngine
from .helpers.entity_helpers import get_coordinator, get_first_iivg_entry

RATING_VALIDATOR = vol.All(
    vol.Coerce(int), vol.Range(min=const.RATING_MIN, max=const.RATING_MAX)
)

# --- Service Schemas ---
COMPLETE_ENTRY_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Optional(const.FIELD_ENTRY_ID): cv.string,
            vol.Optional(const.FIELD_TITLE): cv.string,
            vol.Required(const.FIELD_RATING): RATING_VALIDATOR,
        }
    ),
    cv.has_at_least_one_key(const.FIELD_ENTRY_ID, const.FIELD_TITLE),
)

ADD_ELECTIVE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TITLE): vol.All(cv.string, vol.Length(min=1)),
        vol.Required(const.FIELD_CATEGORY): vol.All(cv.string, vol.Length(min=1)),
        vol.Required(const.FIELD_RELEASE_YEAR): vol.Coerce(int),
        vol.Required(const.FIELD_RATING): RATING_VALIDATOR,
        vol.Optional(const.FIELD_SERIES): cv.string,
        vol.Optional(const.FIELD_SERIES_RANK): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
    }
)

DISMISS_ACHIEVEMENT_SCHEMA = vol.Schema({})

ATTACH_ARTIFACT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_DATA): vol.All(cv.string, vol.Length(min=1)),
    }
)

SET_DISPLAY_NAME_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_NAME): vol.Any(cv.string, None),
    }
)

SYNC_REMOTE_SCHEMA = vol.Schema({})


def _get_coordinator(hass: HomeAssistant, service: str) -> IIVGDataCoordinator:
    entry_id = get_first_iivg_entry(hass)
    if not entry_id:
        const.LOGGER.warning("WARNING: %s: %s", service, const.MSG_NO_ENTRY_FOUND)
        raise HomeAssistantError(const.MSG_NO_ENTRY_FOUND)
    return get_coordinator(hass, entry_id)


def async_setup_services(hass: HomeAssistant) -> None:
    """Register IIVG services."""

    async def handle_complete_entry(call: ServiceCall) -> None:
        """Handle completing a course."""
        coordinator = _get_coordinator(hass, "Complete Entry")
        manager = coordinator.progression_manager
        entry = manager.resolve_entry(
            call.data.get(const.FIELD_ENTRY_ID), call.data.get(const.FIELD_TITLE)
        )
        await manager.async_complete(entry, call.data[const.FIELD_RATING])

    async def handle_add_elective(call: ServiceCall) -> None:
        """Handle adding and completing a user elective."""
        coordinator = _get_coordinator(hass, "Add Elective")
        entry = ProgressionEngine.make_elective(
            call.data[const.FIELD_TITLE].strip(),
            call.data[const.FIELD_CATEGORY].strip(),
            call.data[const.FIELD_RELEASE_YEAR],
            call.data.get(const.FIELD_SERIES),
            call.data.get(const.FIELD_SERIES_RANK),
        )
        await coordinator.progression_manager.async_add_elective(
            entry, call.data[const.FIELD_RATING]
        )

    async def handle_dismiss_achievement(call: ServiceCall) -> None:
        """Handle acknowledging the latest achievement."""
        coordinator = _get_coordinator(hass, "Dismiss Achievement")
        if not coordinator.progression_manager.dismiss_last_earned():
            const.LOGGER.debug("DEBUG: Dismiss Achievement: nothing pending")

    async def handle_attach_artifact(call: ServiceCall) -> None:
        """Handle storing a rendered certificate for the latest achievement."""
        coordinator = _get_coordinator(hass, "Attach Artifact")
        await coordinator.progression_manager.async_attach_artifact(
            call.data[const.FIELD_DATA]
        )

    async def handle_set_display_name(call: ServiceCall) -> None:
        """Handle renaming the student."""
        coordinator = _get_coordinator(hass, "Set Display Name")
        coordinator.progression_manager.set_display_name(
            call.data.get(const.FIELD_NAME)
        )

    async def handle_sync_remote(call: ServiceCall) -> None:
        """Handle pulling completions from the remote store."""
        coordinator = _get_coordinator(hass, "Sync Remote")
        merged = await coordinator.async_sync_remote()
        const.LOGGER.info("INFO: Sync Remote: merged %s completion(s)", merged)

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_ENTRY,
        handle_complete_entry,
        schema=COMPLETE_ENTRY_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ADD_ELECTIVE,
        handle_add_elective,
        schema=ADD_ELECTIVE_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DISMISS_ACHIEVEMENT,
        handle_dismiss_achievement,
        schema=DISMISS_ACHIEVEMENT_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ATTACH_ARTIFACT,
        handle_attach_artifact,
        schema=ATTACH_ARTIFACT_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_DISPLAY_NAME,
        handle_set_display_name,
        schema=SET_DISPLAY_NAME_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SYNC_REMOTE,
        handle_sync_remote,
        schema=SYNC_REMOTE_SCHEMA,
    )

    const.LOGGER.info("INFO: IIVG services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister IIVG services when unloading the integration."""
    services = [
        const.SERVICE_COMPLETE_ENTRY,
        const.SERVICE_ADD_ELECTIVE,
        const.SERVICE_DISMISS_ACHIEVEMENT,
        const.SERVICE_ATTACH_ARTIFACT,
        const.SERVICE_SET_DISPLAY_NAME,
        const.SERVICE_SYNC_REMOTE,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: IIVG services have been unregistered")
