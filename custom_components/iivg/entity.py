"""Base entity classes for IIVG integration."""

from __future__ import annotations

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import IIVGDataCoordinator


class IIVGCoordinatorEntity(CoordinatorEntity[IIVGDataCoordinator]):
    """Base entity class for IIVG sensors with typed coordinator access."""

    @property
    def coordinator(self) -> IIVGDataCoordinator:
        """Return typed coordinator.

        Uses object.__getattribute__ to access the private _coordinator attribute
        set by the parent CoordinatorEntity class.
        """
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: IIVGDataCoordinator) -> None:
        """Set coordinator with proper typing.

        Args:
            value: The IIVGDataCoordinator instance to set.
        """
        object.__setattr__(self, "_coordinator", value)
