# File: sensor.py
"""Sensors for the IIVG integration.

Sensors Defined in This File (3):
01. AvailableCoursesSensor
02. CompletedCoursesSensor
03. LatestAchievementSensor
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass

from . import const
from .engines.achievement_engine import AchievementEngine
from .engines.wave_engine import WaveEngine
from .entity import IIVGCoordinatorEntity
from .helpers.entity_helpers import create_student_device_info

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import IIVGDataCoordinator


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for IIVG integration."""
    coordinator: IIVGDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    async_add_entities(
        [
            AvailableCoursesSensor(coordinator, entry),
            CompletedCoursesSensor(coordinator, entry),
            LatestAchievementSensor(coordinator, entry),
        ]
    )


def _summarize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Return an achievement record with the rendered artifact reduced to a flag."""
    summary = {
        key: value
        for key, value in record.items()
        if key != const.DATA_ACHIEVEMENT_ARTIFACT
    }
    summary[const.ATTR_HAS_ARTIFACT] = bool(record.get(const.DATA_ACHIEVEMENT_ARTIFACT))
    return summary


class IIVGSensor(IIVGCoordinatorEntity, SensorEntity):
    """Shared setup for the per-curriculum sensors."""

    _attr_has_entity_name = True
    _uid_suffix: str = ""

    def __init__(self, coordinator: IIVGDataCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}{self._uid_suffix}"
        self._attr_device_info = create_student_device_info(entry)


# ------------------------------------------------------------------------------------------
class AvailableCoursesSensor(IIVGSensor):
    """Number of courses currently on offer, with their ids in display order."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_AVAILABLE
    _attr_icon = const.DEFAULT_COURSES_ICON
    _attr_state_class = SensorStateClass.MEASUREMENT
    _uid_suffix = const.SENSOR_UID_SUFFIX_AVAILABLE

    @property
    def native_value(self) -> int:
        """Return the number of available courses."""
        return len(self.coordinator.state[const.DATA_AVAILABLE_IDS])

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return ordered ids, titles and the year cursor."""
        entries = self.coordinator.progression_manager.available_entries()
        return {
            const.ATTR_AVAILABLE_IDS: list(
                self.coordinator.state[const.DATA_AVAILABLE_IDS]
            ),
            const.ATTR_AVAILABLE_TITLES: [
                entry[const.DATA_ENTRY_TITLE] for entry in entries
            ],
            const.ATTR_YEAR_CURSOR: self.coordinator.state[const.DATA_YEAR_CURSOR],
            const.ATTR_DISPLAY_NAME: self.coordinator.state.get(
                const.DATA_DISPLAY_NAME
            ),
        }


# ------------------------------------------------------------------------------------------
class CompletedCoursesSensor(IIVGSensor):
    """Number of completed courses.

    Attributes carry the series rating averages and a per-category summary
    (completed count and highest tier reached).
    """

    _attr_translation_key = const.TRANS_KEY_SENSOR_COMPLETED
    _attr_icon = const.DEFAULT_COMPLETED_ICON
    _attr_state_class = SensorStateClass.TOTAL
    _uid_suffix = const.SENSOR_UID_SUFFIX_COMPLETED

    @property
    def native_value(self) -> int:
        """Return the completion count."""
        return len(self.coordinator.state[const.DATA_COMPLETIONS])

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return series averages and category summaries."""
        state = self.coordinator.state
        entry_index = WaveEngine.build_entry_index(
            self.coordinator.catalog, state[const.DATA_DYNAMIC_ENTRIES]
        )
        return {
            const.ATTR_SERIES_AVERAGES: dict(state[const.DATA_SERIES_AVERAGES]),
            const.ATTR_CATEGORIES: AchievementEngine.category_summaries(
                state[const.DATA_COMPLETIONS], entry_index
            ),
        }


# ------------------------------------------------------------------------------------------
class LatestAchievementSensor(IIVGSensor):
    """Most recent tier earned through a completion, until dismissed."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_LATEST_ACHIEVEMENT
    _attr_icon = const.DEFAULT_DIPLOMA_ICON
    _uid_suffix = const.SENSOR_UID_SUFFIX_LATEST_ACHIEVEMENT

    @property
    def native_value(self) -> str:
        """Return the pending tier label, or 'none'."""
        last = self.coordinator.state.get(const.DATA_LAST_EARNED)
        if not last:
            return const.SENTINEL_NONE_TEXT
        return last[const.DATA_ACHIEVEMENT_TIER_LABEL]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return details of the pending record plus every category's best."""
        state = self.coordinator.state
        last = state.get(const.DATA_LAST_EARNED)
        attributes: dict[str, Any] = {
            const.ATTR_HIGHEST_BY_CATEGORY: [
                _summarize_record(record)
                for record in AchievementEngine.highest_by_category(
                    state[const.DATA_EARNED_ACHIEVEMENTS]
                )
            ],
        }
        if not last:
            return attributes

        category = last[const.DATA_ACHIEVEMENT_CATEGORY]
        attributes.update(
            {
                const.ATTR_CATEGORY: category,
                const.ATTR_EARNED_AT: last[const.DATA_ACHIEVEMENT_EARNED_AT],
                const.ATTR_ARTIFACT_INDEX: AchievementEngine.artifact_index(
                    last[const.DATA_ACHIEVEMENT_TIER_LABEL],
                    category,
                    self.coordinator.catalog.category_order,
                ),
                const.ATTR_HAS_ARTIFACT: bool(
                    last.get(const.DATA_ACHIEVEMENT_ARTIFACT)
                ),
            }
        )
        return attributes
