"""Shared fixtures for IIVG tests."""

from pathlib import Path
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_registry as er
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.iivg.const import (
    CONF_CATALOG_PATH,
    CONF_DISPLAY_NAME,
    COORDINATOR,
    DOMAIN,
)
from custom_components.iivg.coordinator import IIVGDataCoordinator
from tests.helpers import make_entry, write_catalog

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Write a small two-console catalog to disk.

    Atari: Combat (1977), Outlaw (1978), Adventure (1979)
    NES:   Super Mario Bros. (1985), extra Super Mario Bros. 3 (1988)
    """
    root = tmp_path / "iivg"
    write_catalog(
        root,
        [
            make_entry("combat", 1977, title="Combat"),
            make_entry("outlaw", 1978, title="Outlaw"),
            make_entry("adventure", 1979, title="Adventure"),
        ],
        generation=1,
    )
    write_catalog(
        root,
        [
            make_entry(
                "smb", 1985, title="Super Mario Bros.", category="NES", series="Mario"
            )
        ],
        extra=[
            make_entry(
                "smb3",
                1988,
                title="Super Mario Bros. 3",
                category="NES",
                series="Mario",
            )
        ],
        series={"Mario": ["Super Mario Bros.", "Super Mario Bros. 3"]},
        generation=3,
    )
    return root


@pytest.fixture
def mock_config_entry(catalog_dir: Path) -> MockConfigEntry:  # pylint: disable=redefined-outer-name
    """Return a mock config entry pointing at the test catalog."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Sam",
        data={
            CONF_DISPLAY_NAME: "Sam",
            CONF_CATALOG_PATH: str(catalog_dir),
        },
        options={},
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the IIVG integration for testing."""
    mock_config_entry.add_to_hass(hass)

    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    return mock_config_entry


def get_coordinator(hass: HomeAssistant, entry: MockConfigEntry) -> IIVGDataCoordinator:
    """Return the coordinator for a set-up entry."""
    return hass.data[DOMAIN][entry.entry_id][COORDINATOR]


def get_sensor_entity_id(hass: HomeAssistant, entry: MockConfigEntry, suffix: str) -> str:
    """Resolve a sensor entity_id from its unique_id suffix."""
    entity_id = er.async_get(hass).async_get_entity_id(
        "sensor", DOMAIN, f"{entry.entry_id}{suffix}"
    )
    assert entity_id is not None, f"No sensor registered for suffix {suffix}"
    return entity_id
