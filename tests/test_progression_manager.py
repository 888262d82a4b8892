"""Tests for ProgressionManager events and remote store mirroring.

This module tests:
- Dispatcher events emitted by completions (recorded, unlocked, achievement)
- Initial remote sync rehydrating the local state on setup
- Completions and certificates mirrored to the remote store
- Remote failures logged without undoing local progress
- Signal checks and the workflow lock shared through BaseManager
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.test_util.aiohttp import (
    AiohttpClientMocker,
)

from custom_components.iivg import const
from custom_components.iivg.helpers.entity_helpers import get_event_signal
from tests.conftest import get_coordinator

REMOTE_URL = "https://iivg.example.com"


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def remote_entry(catalog_dir: Path) -> MockConfigEntry:
    """Config entry with a remote store configured."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title="Sam",
        data={
            const.CONF_DISPLAY_NAME: "Sam",
            const.CONF_CATALOG_PATH: str(catalog_dir),
            const.CONF_REMOTE_URL: REMOTE_URL,
            const.CONF_REMOTE_TOKEN: "secret",
        },
        entry_id="remote_entry_id",
    )


def capture(hass: HomeAssistant, entry_id: str, suffix: str) -> list[dict[str, Any]]:
    """Collect payloads emitted for one signal suffix."""
    payloads: list[dict[str, Any]] = []

    @callback
    def _record(payload: dict[str, Any]) -> None:
        payloads.append(payload)

    async_dispatcher_connect(hass, get_event_signal(entry_id, suffix), _record)
    return payloads


async def setup_entry(hass: HomeAssistant, entry: MockConfigEntry) -> None:
    """Add and set up entry, waiting for the initial remote sync."""
    entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done(wait_background_tasks=True)


async def complete(hass: HomeAssistant, entry_id: str, rating: int = 5) -> None:
    """Complete one course and let background remote writes finish."""
    await hass.services.async_call(
        const.DOMAIN,
        const.SERVICE_COMPLETE_ENTRY,
        {const.FIELD_ENTRY_ID: entry_id, const.FIELD_RATING: rating},
        blocking=True,
    )
    await hass.async_block_till_done(wait_background_tasks=True)


def calls_to(aioclient_mock: AiohttpClientMocker, path: str) -> list[Any]:
    """Return the recorded payloads sent to path."""
    return [
        data
        for _, url, data, _ in aioclient_mock.mock_calls
        if str(url) == f"{REMOTE_URL}{path}"
    ]


# ============================================================================
# Events
# ============================================================================


class TestProgressionEvents:
    """Tests for dispatcher events emitted by completions."""

    @pytest.mark.asyncio
    async def test_completion_and_achievement_events(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test the third Atari completion emits a diploma event."""
        recorded = capture(
            hass, mock_config_entry.entry_id, const.SIGNAL_SUFFIX_COMPLETION_RECORDED
        )
        earned = capture(
            hass, mock_config_entry.entry_id, const.SIGNAL_SUFFIX_ACHIEVEMENT_EARNED
        )
        await setup_entry(hass, mock_config_entry)

        for entry_id in ("combat", "outlaw", "adventure"):
            await complete(hass, entry_id)

        assert [p["entry_id"] for p in recorded] == ["combat", "outlaw", "adventure"]
        assert recorded[0]["released_ids"] == ["adventure"]
        assert recorded[1]["released_ids"] == ["smb"]
        assert len(earned) == 1
        assert earned[0]["category"] == "Atari"
        assert earned[0]["tier_label"] == const.TIER_KINDERGARTEN
        assert earned[0]["artifact_index"] == 1

    @pytest.mark.asyncio
    async def test_series_unlock_event(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test a qualifying rating announces the unlocked sequel."""
        unlocked = capture(
            hass, mock_config_entry.entry_id, const.SIGNAL_SUFFIX_ENTRY_UNLOCKED
        )
        await setup_entry(hass, mock_config_entry)

        await complete(hass, "combat")
        await complete(hass, "outlaw")
        await complete(hass, "smb", rating=10)

        assert unlocked == [
            {
                "entry_id": "smb3",
                "title": "Super Mario Bros. 3",
                "series": "Mario",
                "config_entry_id": "test_entry_id",
            }
        ]

    @pytest.mark.asyncio
    async def test_duplicate_emits_nothing(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test an ignored duplicate does not emit a second completion."""
        recorded = capture(
            hass, mock_config_entry.entry_id, const.SIGNAL_SUFFIX_COMPLETION_RECORDED
        )
        await setup_entry(hass, mock_config_entry)

        await complete(hass, "combat")
        await complete(hass, "combat", rating=9)

        assert len(recorded) == 1

    @pytest.mark.asyncio
    async def test_payload_names_config_entry(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test every payload carries the emitting config entry id."""
        recorded = capture(
            hass, mock_config_entry.entry_id, const.SIGNAL_SUFFIX_COMPLETION_RECORDED
        )
        await setup_entry(hass, mock_config_entry)

        await complete(hass, "combat")

        assert recorded[0][const.EVENT_CONFIG_ENTRY_ID] == mock_config_entry.entry_id

    @pytest.mark.asyncio
    async def test_unknown_signal_rejected(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test emit and listen refuse suffixes outside the IIVG signals."""
        await setup_entry(hass, mock_config_entry)
        manager = get_coordinator(hass, mock_config_entry).progression_manager

        with pytest.raises(ValueError, match="Unknown IIVG signal suffix"):
            manager.emit("_badge_granted", entry_id="combat")
        with pytest.raises(ValueError, match="Unknown IIVG signal suffix"):
            manager.listen("_badge_granted", lambda payload: None)


# ============================================================================
# Workflow lock
# ============================================================================


class TestWorkflowLock:
    """Tests for state transitions running under the manager lock."""

    @pytest.mark.asyncio
    async def test_elective_added_and_completed_under_one_lock(
        self, hass: HomeAssistant, mock_config_entry: MockConfigEntry
    ) -> None:
        """Test the completion half of add_elective never runs unlocked."""
        await setup_entry(hass, mock_config_entry)
        coordinator = get_coordinator(hass, mock_config_entry)
        manager = coordinator.progression_manager
        original = manager._apply_completion
        held: list[bool] = []
        dynamic_ids: list[list[str]] = []

        def _tracking(entry, rating):
            held.append(manager._lock.locked())
            dynamic_ids.append(
                [
                    e[const.DATA_ENTRY_ID]
                    for e in coordinator.state[const.DATA_DYNAMIC_ENTRIES]
                ]
            )
            return original(entry, rating)

        with patch.object(manager, "_apply_completion", side_effect=_tracking):
            await hass.services.async_call(
                const.DOMAIN,
                const.SERVICE_ADD_ELECTIVE,
                {
                    const.FIELD_TITLE: "Pitfall!",
                    const.FIELD_CATEGORY: "Atari",
                    const.FIELD_RELEASE_YEAR: 1982,
                    const.FIELD_RATING: 6,
                },
                blocking=True,
            )
            await hass.async_block_till_done()

        assert held == [True]
        (elective_id,) = dynamic_ids[0]
        assert elective_id.startswith(const.ELECTIVE_ID_PREFIX)
        assert [
            c[const.DATA_COMPLETION_ENTRY_ID]
            for c in coordinator.state[const.DATA_COMPLETIONS]
        ] == [elective_id]
        assert not manager._lock.locked()


# ============================================================================
# Remote store
# ============================================================================


class TestRemoteStore:
    """Tests for syncing with and mirroring to the remote store."""

    @pytest.mark.asyncio
    async def test_initial_sync_rehydrates_state(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
    ) -> None:
        """Test setup merges remote completions without a pending diploma."""
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}",
            json={
                "completions": [
                    {"gameId": "combat", "rating": 9, "completedAt": "2025-01-01T00:00:00Z"},
                    {"gameId": "no-such-game", "rating": 5},
                ]
            },
        )
        rehydrated = capture(
            hass, remote_entry.entry_id, const.SIGNAL_SUFFIX_STATE_REHYDRATED
        )

        await setup_entry(hass, remote_entry)

        state = get_coordinator(hass, remote_entry).state
        assert [
            c[const.DATA_COMPLETION_ENTRY_ID] for c in state[const.DATA_COMPLETIONS]
        ] == ["combat"]
        assert state[const.DATA_AVAILABLE_IDS] == ["outlaw", "adventure"]
        assert state[const.DATA_LAST_EARNED] is None
        assert rehydrated == [
            {"merged_ids": ["combat"], "config_entry_id": "remote_entry_id"}
        ]
        # rehydrated completions are not written back
        assert calls_to(aioclient_mock, const.REMOTE_PATH_COMPLETE) == []

    @pytest.mark.asyncio
    async def test_initial_sync_failure_keeps_local_state(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test an unreachable remote still leaves a working setup."""
        aioclient_mock.get(f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}", status=503)

        await setup_entry(hass, remote_entry)

        state = get_coordinator(hass, remote_entry).state
        assert state[const.DATA_AVAILABLE_IDS] == ["combat", "outlaw"]
        assert "Failed to fetch completions" in caplog.text

    @pytest.mark.asyncio
    async def test_completion_is_mirrored(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
    ) -> None:
        """Test each local completion is posted to the remote store."""
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}", json={"completions": []}
        )
        aioclient_mock.post(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETE}", json={"ok": True}
        )
        await setup_entry(hass, remote_entry)

        await complete(hass, "outlaw", rating=6)

        assert calls_to(aioclient_mock, const.REMOTE_PATH_COMPLETE) == [
            {"gameId": "outlaw", "rating": 6}
        ]

    @pytest.mark.asyncio
    async def test_remote_failure_is_logged(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a rejected remote write keeps the local completion."""
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}", json={"completions": []}
        )
        aioclient_mock.post(f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETE}", status=500)
        await setup_entry(hass, remote_entry)

        await complete(hass, "combat")

        state = get_coordinator(hass, remote_entry).state
        assert len(state[const.DATA_COMPLETIONS]) == 1
        assert "Failed to save completion" in caplog.text

    @pytest.mark.asyncio
    async def test_artifact_url_is_mirrored(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
    ) -> None:
        """Test attaching a certificate posts console, label and image."""
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}", json={"completions": []}
        )
        aioclient_mock.post(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETE}", json={"ok": True}
        )
        aioclient_mock.post(
            f"{REMOTE_URL}{const.REMOTE_PATH_ACHIEVEMENT_IMAGE}", json={"ok": True}
        )
        await setup_entry(hass, remote_entry)
        for entry_id in ("combat", "outlaw", "adventure"):
            await complete(hass, entry_id)

        await hass.services.async_call(
            const.DOMAIN,
            const.SERVICE_ATTACH_ARTIFACT,
            {const.FIELD_DATA: "https://cdn.example.com/diploma.png"},
            blocking=True,
        )
        await hass.async_block_till_done(wait_background_tasks=True)

        assert calls_to(aioclient_mock, const.REMOTE_PATH_ACHIEVEMENT_IMAGE) == [
            {
                "console": "Atari",
                "label": const.TIER_KINDERGARTEN,
                "imageUrl": "https://cdn.example.com/diploma.png",
            }
        ]

    @pytest.mark.asyncio
    async def test_sync_remote_service(
        self,
        hass: HomeAssistant,
        remote_entry: MockConfigEntry,
        aioclient_mock: AiohttpClientMocker,
    ) -> None:
        """Test the sync service merges completions added remotely later."""
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}", json={"completions": []}
        )
        await setup_entry(hass, remote_entry)

        aioclient_mock.clear_requests()
        aioclient_mock.get(
            f"{REMOTE_URL}{const.REMOTE_PATH_COMPLETIONS}",
            json={"completions": [{"gameId": "outlaw", "rating": 4}]},
        )
        await hass.services.async_call(
            const.DOMAIN, const.SERVICE_SYNC_REMOTE, {}, blocking=True
        )
        await hass.async_block_till_done()

        state = get_coordinator(hass, remote_entry).state
        assert [
            c[const.DATA_COMPLETION_ENTRY_ID] for c in state[const.DATA_COMPLETIONS]
        ] == ["outlaw"]
        assert state[const.DATA_AVAILABLE_IDS] == ["combat", "adventure"]
