"""Progression Manager - Stateful orchestration of the curriculum.

This manager owns every mutation of the progression state:
- Completing entries (with series unlock, wave release and tier evaluation)
- Adding electives
- Dismissing and rendering the latest achievement
- Rehydrating from the remote completion store
- Display name changes

ARCHITECTURE:
- ProgressionManager = STATEFUL workflows (lock, persist, events, remote I/O)
- ProgressionEngine = Pure state transitions (STATELESS)

Every workflow runs under the BaseManager lock so completions, electives and
rehydration are applied one at a time. Remote writes are fire-and-forget:
failures are logged and never undo a local change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError

from .. import const
from ..engines.achievement_engine import AchievementEngine
from ..engines.progression_engine import CompletionOutcome, ProgressionEngine
from ..engines.series_engine import SeriesEngine
from ..engines.wave_engine import WaveEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from homeassistant.core import HomeAssistant

    from ..coordinator import IIVGDataCoordinator
    from ..type_defs import AchievementRecord, CatalogEntry, RemoteCompletion


class ProgressionManager(BaseManager):
    """Manager for all progression workflows.

    Responsibilities:
    - Serialize state transitions
    - Persist after every mutation
    - Emit SIGNAL_SUFFIX_* events for completions, unlocks and achievements
    - Mirror completions and artifacts to the remote store

    NOT responsible for:
    - Ordering, unlock or tier rules (ProgressionEngine and friends)
    - Loading the catalog or snapshot (Coordinator)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: IIVGDataCoordinator,
    ) -> None:
        """Initialize the ProgressionManager.

        Args:
            hass: Home Assistant instance
            coordinator: The main IIVG coordinator
        """
        super().__init__(hass, coordinator)
        self._coordinator = coordinator

    async def async_setup(self) -> None:
        """Set up the ProgressionManager.

        Completions and achievements are mirrored remotely from their events,
        so every workflow that records one gets the remote write for free.
        """
        self.listen(
            const.SIGNAL_SUFFIX_COMPLETION_RECORDED,
            self._on_completion_recorded,
        )
        self.listen(
            const.SIGNAL_SUFFIX_ACHIEVEMENT_EARNED,
            self._on_achievement_earned,
        )

    # =========================================================================
    # OPTIONS
    # =========================================================================

    @property
    def wave_floor(self) -> int:
        """Minimum number of entries kept visible."""
        return int(
            self._coordinator.config_entry.options.get(
                const.CONF_WAVE_FLOOR, const.DEFAULT_WAVE_FLOOR
            )
        )

    @property
    def unlock_rating(self) -> int:
        """Lowest rating that unlocks the next series entry."""
        return int(
            self._coordinator.config_entry.options.get(
                const.CONF_SERIES_UNLOCK_RATING, const.DEFAULT_SERIES_UNLOCK_RATING
            )
        )

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_entry(self, entry_id: str) -> CatalogEntry | None:
        """Return the catalog or dynamic entry with entry_id."""
        entry_index = WaveEngine.build_entry_index(
            self._coordinator.catalog,
            self._coordinator.state[const.DATA_DYNAMIC_ENTRIES],
        )
        return entry_index.get(entry_id)

    def resolve_entry(
        self, entry_id: str | None = None, title: str | None = None
    ) -> CatalogEntry:
        """Resolve an entry by id, falling back to an exact title match.

        Raises:
            HomeAssistantError: When neither lookup finds an entry.
        """
        entry: CatalogEntry | None = None
        if entry_id:
            entry = self.get_entry(entry_id)
        if entry is None and title:
            entry = SeriesEngine.resolve_title(
                title,
                self._coordinator.catalog,
                self._coordinator.state[const.DATA_DYNAMIC_ENTRIES],
            )
        if entry is None:
            raise HomeAssistantError(
                const.ERROR_ENTRY_NOT_FOUND_FMT.format(entry_id or title)
            )
        return entry

    def available_entries(self) -> list[CatalogEntry]:
        """Return available entries in display order."""
        entry_index = WaveEngine.build_entry_index(
            self._coordinator.catalog,
            self._coordinator.state[const.DATA_DYNAMIC_ENTRIES],
        )
        return [
            entry_index[entry_id]
            for entry_id in self._coordinator.state[const.DATA_AVAILABLE_IDS]
            if entry_id in entry_index
        ]

    # =========================================================================
    # WORKFLOWS
    # =========================================================================

    def bootstrap(self) -> None:
        """Initialise or top up the state against the loaded catalog."""
        ProgressionEngine.bootstrap(
            self._coordinator.state, self._coordinator.catalog, self.wave_floor
        )
        const.LOGGER.debug(
            "DEBUG: Bootstrap - %s available, year cursor %s",
            len(self._coordinator.state[const.DATA_AVAILABLE_IDS]),
            self._coordinator.state[const.DATA_YEAR_CURSOR],
        )

    async def async_complete(
        self, entry: CatalogEntry, rating: int
    ) -> CompletionOutcome | None:
        """Complete entry with rating.

        Returns None when the entry was already completed.

        Raises:
            HomeAssistantError: Rating outside RATING_MIN..RATING_MAX.
        """
        self._validate_rating(rating)
        async with self._lock:
            outcome = self._apply_completion(entry, rating)
        if outcome is not None:
            self._announce(outcome)
        return outcome

    async def async_add_elective(
        self, entry: CatalogEntry, rating: int
    ) -> CompletionOutcome | None:
        """Add a user elective and complete it in one step.

        A title that already exists in the catalog or dynamic pool is
        completed as that entry instead of creating a second one. Adding and
        completing happen under a single lock acquisition.
        """
        self._validate_rating(rating)
        async with self._lock:
            target = ProgressionEngine.add_elective(
                self._coordinator.state, self._coordinator.catalog, entry
            )
            if target is entry:
                const.LOGGER.info(
                    "INFO: Added elective '%s' (%s, %s)",
                    entry[const.DATA_ENTRY_TITLE],
                    entry[const.DATA_ENTRY_CATEGORY],
                    entry[const.DATA_ENTRY_RELEASE_YEAR],
                )
            outcome = self._apply_completion(target, rating)
        if outcome is not None:
            self._announce(outcome)
        return outcome

    @staticmethod
    def _validate_rating(rating: int) -> None:
        if not ProgressionEngine.validate_rating(rating):
            raise HomeAssistantError(
                f"Rating must be an integer between {const.RATING_MIN} "
                f"and {const.RATING_MAX}, got {rating!r}"
            )

    def _apply_completion(
        self, entry: CatalogEntry, rating: int
    ) -> CompletionOutcome | None:
        """Run the completion transition and persist. Caller holds the lock."""
        outcome = ProgressionEngine.complete(
            self._coordinator.state,
            self._coordinator.catalog,
            entry,
            rating,
            floor=self.wave_floor,
            unlock_rating=self.unlock_rating,
        )
        if outcome is None:
            const.LOGGER.info(
                "INFO: '%s' is already completed, ignoring duplicate completion",
                entry[const.DATA_ENTRY_TITLE],
            )
            return None
        self.persist()
        return outcome

    def _announce(self, outcome: CompletionOutcome) -> None:
        """Log and emit the events for an applied completion."""
        const.LOGGER.info(
            "INFO: Completed '%s' with rating %s",
            outcome.entry[const.DATA_ENTRY_TITLE],
            outcome.completion[const.DATA_COMPLETION_RATING],
        )
        self.emit(
            const.SIGNAL_SUFFIX_COMPLETION_RECORDED,
            entry_id=outcome.completion[const.DATA_COMPLETION_ENTRY_ID],
            rating=outcome.completion[const.DATA_COMPLETION_RATING],
            completed_at=outcome.completion[const.DATA_COMPLETION_COMPLETED_AT],
            released_ids=list(outcome.released_ids),
        )
        if outcome.unlocked is not None:
            const.LOGGER.info(
                "INFO: Unlocked '%s' in series '%s'",
                outcome.unlocked[const.DATA_ENTRY_TITLE],
                outcome.unlocked.get(const.DATA_ENTRY_SERIES),
            )
            self.emit(
                const.SIGNAL_SUFFIX_ENTRY_UNLOCKED,
                entry_id=outcome.unlocked[const.DATA_ENTRY_ID],
                title=outcome.unlocked[const.DATA_ENTRY_TITLE],
                series=outcome.unlocked.get(const.DATA_ENTRY_SERIES),
            )
        if outcome.achievement is not None:
            self._emit_achievement(outcome.achievement)

    def dismiss_last_earned(self) -> bool:
        """Clear the pending achievement notification."""
        dismissed = ProgressionEngine.dismiss_last_earned(self._coordinator.state)
        if dismissed:
            self.persist()
        return dismissed

    async def async_attach_artifact(self, data: str) -> AchievementRecord | None:
        """Attach rendered certificate data to the latest achievement.

        Returns None when nothing is pending or the achievement already has
        an artifact.
        """
        async with self._lock:
            record = ProgressionEngine.attach_artifact(self._coordinator.state, data)
            if record is None:
                const.LOGGER.debug("DEBUG: Attach artifact - Nothing to attach")
                return None
            self.persist()

        remote = self._coordinator.remote_store
        if remote is not None:
            self._fire_and_forget(
                remote.async_save_artifact_url(
                    record[const.DATA_ACHIEVEMENT_CATEGORY],
                    record[const.DATA_ACHIEVEMENT_TIER_LABEL],
                    data,
                ),
                "save achievement image",
            )
        return record

    async def async_rehydrate(
        self, remote_completions: list[RemoteCompletion]
    ) -> int:
        """Merge remote completions and return how many were added."""
        async with self._lock:
            merged = ProgressionEngine.rehydrate(
                self._coordinator.state,
                self._coordinator.catalog,
                remote_completions,
                floor=self.wave_floor,
            )
            self.persist()

        const.LOGGER.info(
            "INFO: Rehydrated %s completion(s) from the remote store", len(merged)
        )
        self.emit(
            const.SIGNAL_SUFFIX_STATE_REHYDRATED,
            merged_ids=[c[const.DATA_COMPLETION_ENTRY_ID] for c in merged],
        )
        return len(merged)

    def set_display_name(self, name: str | None) -> None:
        """Store the user's display name."""
        ProgressionEngine.set_display_name(self._coordinator.state, name)
        self.persist()

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    def _emit_achievement(self, record: AchievementRecord) -> None:
        category = record[const.DATA_ACHIEVEMENT_CATEGORY]
        label = record[const.DATA_ACHIEVEMENT_TIER_LABEL]
        const.LOGGER.info("INFO: Earned '%s' in %s", label, category)
        self.emit(
            const.SIGNAL_SUFFIX_ACHIEVEMENT_EARNED,
            category=category,
            tier_label=label,
            earned_at=record[const.DATA_ACHIEVEMENT_EARNED_AT],
            artifact_index=AchievementEngine.artifact_index(
                label, category, self._coordinator.catalog.category_order
            ),
        )

    @callback
    def _on_completion_recorded(self, payload: dict[str, Any]) -> None:
        remote = self._coordinator.remote_store
        if remote is None:
            return
        self._fire_and_forget(
            remote.async_save_completion(payload["entry_id"], payload["rating"]),
            "save completion",
        )

    @callback
    def _on_achievement_earned(self, payload: dict[str, Any]) -> None:
        const.LOGGER.debug(
            "DEBUG: Achievement '%s' in %s waiting for a rendered artifact",
            payload.get("tier_label"),
            payload.get("category"),
        )

    # =========================================================================
    # REMOTE HELPERS
    # =========================================================================

    def _fire_and_forget(
        self, job: Coroutine[Any, Any, None], description: str
    ) -> None:
        """Run a remote write in the background, logging any failure."""

        async def _runner() -> None:
            try:
                await job
            except (HomeAssistantError, aiohttp.ClientError, TimeoutError) as err:
                const.LOGGER.warning(
                    "WARNING: Remote store - Failed to %s: %s", description, err
                )

        self.hass.async_create_background_task(
            _runner(), name=f"{const.DOMAIN}_{description.replace(' ', '_')}"
        )
