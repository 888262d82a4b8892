"""Base manager class for IIVG managers.

Managers share one curriculum per config entry, so the base class carries the
pieces every workflow needs: the workflow lock, the persist-and-refresh step
and the per-entry progression signals.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import IIVGDataCoordinator


class BaseManager(ABC):
    """Base class for IIVG managers.

    Provides:
    - A lock serializing every state transition of the curriculum
    - persist() to save the snapshot and refresh entities
    - emit()/listen() restricted to the IIVG progression signals, with the
      config entry id stamped on every payload

    Subclasses must implement:
    - async_setup(): Subscribe to events
    """

    def __init__(self, hass: HomeAssistant, coordinator: IIVGDataCoordinator) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator owning the curriculum state
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id
        self._lock = asyncio.Lock()

    @staticmethod
    def _check_suffix(suffix: str) -> None:
        if suffix not in const.SIGNAL_SUFFIXES:
            raise ValueError(f"Unknown IIVG signal suffix: {suffix}")

    def persist(self) -> None:
        """Save the snapshot and push the new state to entities."""
        self.coordinator._persist_and_update()

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send a progression event to this entry's listeners.

        Payload values must be JSON-serializable; the config entry id is added
        under EVENT_CONFIG_ENTRY_ID.
        """
        self._check_suffix(suffix)
        payload[const.EVENT_CONFIG_ENTRY_ID] = self.entry_id
        const.LOGGER.debug(
            "DEBUG: Event '%s' for %s: %s", suffix, self.entry_id, sorted(payload)
        )
        async_dispatcher_send(
            self.hass, get_event_signal(self.entry_id, suffix), payload
        )

    def listen(self, suffix: str, callback: Callable[[dict[str, Any]], Any]) -> None:
        """Subscribe to a progression event until the entry is unloaded."""
        self._check_suffix(suffix)
        unsub = async_dispatcher_connect(
            self.hass, get_event_signal(self.entry_id, suffix), callback
        )
        self.coordinator.config_entry.async_on_unload(unsub)

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager. Called once from the coordinator's first refresh."""
