# File: helpers/entity_helpers.py
"""Entity, device and signal helpers for the IIVG integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo

from .. import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..coordinator import IIVGDataCoordinator


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Format: 'iivg_{entry_id}_{suffix}'

    Args:
        entry_id: ConfigEntry.entry_id from coordinator
        suffix: Signal suffix constant from const.py (e.g., SIGNAL_SUFFIX_ACHIEVEMENT_EARNED)

    Returns:
        Fully qualified signal name scoped to this integration instance
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


def create_student_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info grouping every sensor of one curriculum."""
    return DeviceInfo(
        identifiers={(const.DOMAIN, config_entry.entry_id)},
        name=config_entry.title,
        manufacturer=const.DEVICE_MANUFACTURER,
        model=const.DEVICE_MODEL,
        entry_type=DeviceEntryType.SERVICE,
    )


def get_first_iivg_entry(hass: HomeAssistant) -> str | None:
    """Retrieve the first IIVG config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def get_coordinator(hass: HomeAssistant, entry_id: str) -> IIVGDataCoordinator:
    """Return the coordinator stored for entry_id."""
    return hass.data[const.DOMAIN][entry_id][const.COORDINATOR]
