"""Progression Engine - Pure state transitions for one user's curriculum.

This engine composes the wave, series and achievement engines into the
transitions applied to a ProgressionState:
- init / bootstrap (deal the first year, then keep the visible floor)
- complete (record, unlock, deal, average, evaluate tier)
- rehydrate (merge remote completions without a "just unlocked" signal)
- dismiss / attach artifact on the last earned record
- electives and display name

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
State is modified in place. ProgressionManager serializes calls, persists,
emits events and talks to the remote store.

Invariants restored after every transition:
- available ids never contain a completed id or an unknown id
- available ids are ordered by (release_year ASC, order_index DESC, title ASC)
- at most one completion per entry id
- earned achievements are tier-monotonic per category
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
import uuid

from .. import const
from .achievement_engine import AchievementEngine
from .series_engine import SeriesEngine
from .wave_engine import WaveEngine

if TYPE_CHECKING:
    from ..helpers.catalog_helpers import Catalog
    from ..type_defs import (
        AchievementRecord,
        CatalogEntry,
        Completion,
        ProgressionState,
        RemoteCompletion,
    )


def _now_iso() -> str:
    """Return current UTC time as ISO string (engine-internal helper)."""
    return datetime.now(UTC).isoformat()


# =============================================================================
# TRANSITION OUTCOME DATA STRUCTURE
# =============================================================================


@dataclass
class CompletionOutcome:
    """Effect of one completion on the progression state.

    Returned by ProgressionEngine.complete() so the manager can emit events
    and notify the remote store without re-deriving anything.

    Attributes:
        completion: The completion appended to the log
        entry: The completed entry
        unlocked: Series entry surfaced by this completion (or None)
        achievement: Newly earned record, also set as last_earned (or None)
        released_ids: Ids made available by the wave pass
    """

    completion: Completion
    entry: CatalogEntry
    unlocked: CatalogEntry | None = None
    achievement: AchievementRecord | None = None
    released_ids: tuple[str, ...] = ()


# =============================================================================
# PROGRESSION ENGINE
# =============================================================================


class ProgressionEngine:
    """Pure logic engine for progression state transitions."""

    # =========================================================================
    # STATE CONSTRUCTION
    # =========================================================================

    @staticmethod
    def default_state() -> ProgressionState:
        """Return a freshly constructed, empty state."""
        return {
            const.DATA_DISPLAY_NAME: None,
            const.DATA_AVAILABLE_IDS: [],
            const.DATA_COMPLETIONS: [],
            const.DATA_RELEASED_WAVES: [],
            const.DATA_YEAR_CURSOR: 0,
            const.DATA_DYNAMIC_ENTRIES: [],
            const.DATA_SERIES_AVERAGES: {},
            const.DATA_EARNED_ACHIEVEMENTS: [],
            const.DATA_LAST_EARNED: None,
        }

    @staticmethod
    def init_state(
        catalog: Catalog, display_name: str | None = None
    ) -> ProgressionState:
        """Create a state positioned on the catalog's first year.

        Only that first year is dealt; bootstrap() tops up to the floor.
        """
        state = ProgressionEngine.default_state()
        state[const.DATA_DISPLAY_NAME] = display_name
        first_year = catalog.min_year
        WaveEngine.deal_year(state, catalog, first_year)
        state[const.DATA_YEAR_CURSOR] = first_year + 1
        return state

    @staticmethod
    def is_fresh(state: ProgressionState) -> bool:
        """Return True when nothing was ever dealt or completed."""
        return (
            not state.get(const.DATA_AVAILABLE_IDS)
            and not state.get(const.DATA_COMPLETIONS)
            and not state.get(const.DATA_RELEASED_WAVES)
        )

    @staticmethod
    def bootstrap(
        state: ProgressionState,
        catalog: Catalog,
        floor: int = const.DEFAULT_WAVE_FLOOR,
    ) -> ProgressionState:
        """Initialise a fresh state, otherwise only re-run the wave pass.

        Idempotent: running it twice on the same catalog changes nothing the
        second time.
        """
        if ProgressionEngine.is_fresh(state):
            state.update(
                ProgressionEngine.init_state(
                    catalog, state.get(const.DATA_DISPLAY_NAME)
                )
            )
        return WaveEngine.ensure_wave(state, catalog, floor)

    # =========================================================================
    # COMPLETION
    # =========================================================================

    @staticmethod
    def validate_rating(rating: object) -> bool:
        """Return True for integer ratings within RATING_MIN..RATING_MAX."""
        return (
            isinstance(rating, int)
            and not isinstance(rating, bool)
            and const.RATING_MIN <= rating <= const.RATING_MAX
        )

    @staticmethod
    def is_completed(state: ProgressionState, entry_id: str) -> bool:
        """Return True when entry_id already has a completion."""
        return entry_id in WaveEngine.completed_ids(state)

    @staticmethod
    def complete(
        state: ProgressionState,
        catalog: Catalog,
        entry: CatalogEntry,
        rating: int,
        *,
        floor: int = const.DEFAULT_WAVE_FLOOR,
        unlock_rating: int = const.DEFAULT_SERIES_UNLOCK_RATING,
        now_iso: str | None = None,
    ) -> CompletionOutcome | None:
        """Record a completion and run every follow-up rule.

        Returns None (state untouched) when the entry is already completed.
        last_earned is only ever set here, never cleared.
        """
        entry_id = entry[const.DATA_ENTRY_ID]
        if ProgressionEngine.is_completed(state, entry_id):
            return None

        timestamp = now_iso or _now_iso()
        completion: Completion = {
            const.DATA_COMPLETION_ENTRY_ID: entry_id,
            const.DATA_COMPLETION_RATING: rating,
            const.DATA_COMPLETION_COMPLETED_AT: timestamp,
        }
        state[const.DATA_COMPLETIONS].append(completion)
        state[const.DATA_AVAILABLE_IDS] = [
            available_id
            for available_id in state[const.DATA_AVAILABLE_IDS]
            if available_id != entry_id
        ]

        unlocked = SeriesEngine.maybe_inject(
            state, catalog, entry, rating, unlock_rating
        )

        before = set(state[const.DATA_AVAILABLE_IDS])
        WaveEngine.ensure_wave(state, catalog, floor)
        released = tuple(
            available_id
            for available_id in state[const.DATA_AVAILABLE_IDS]
            if available_id not in before
        )

        SeriesEngine.recompute_series_averages(state, catalog)

        achievement = ProgressionEngine.record_tier(
            state,
            catalog,
            entry[const.DATA_ENTRY_CATEGORY],
            timestamp,
            notify=True,
        )

        return CompletionOutcome(
            completion=completion,
            entry=entry,
            unlocked=unlocked,
            achievement=achievement,
            released_ids=released,
        )

    @staticmethod
    def record_tier(
        state: ProgressionState,
        catalog: Catalog,
        category: str,
        earned_at: str,
        *,
        notify: bool,
    ) -> AchievementRecord | None:
        """Append one record per tier crossed since the category's best.

        Returns the highest new record, which also becomes last_earned when
        notify=True. Lower tiers skipped over in one step are logged too.
        """
        entry_index = WaveEngine.build_entry_index(
            catalog, state[const.DATA_DYNAMIC_ENTRIES]
        )
        labels = AchievementEngine.crossed_tiers(
            category,
            state[const.DATA_COMPLETIONS],
            state[const.DATA_EARNED_ACHIEVEMENTS],
            entry_index,
        )
        record: AchievementRecord | None = None
        for label in labels:
            record = {
                const.DATA_ACHIEVEMENT_CATEGORY: category,
                const.DATA_ACHIEVEMENT_TIER_LABEL: label,
                const.DATA_ACHIEVEMENT_EARNED_AT: earned_at,
                const.DATA_ACHIEVEMENT_ARTIFACT: None,
            }
            state[const.DATA_EARNED_ACHIEVEMENTS].append(record)

        if record is not None and notify:
            state[const.DATA_LAST_EARNED] = record
        return record

    # =========================================================================
    # REHYDRATION
    # =========================================================================

    @staticmethod
    def rehydrate(
        state: ProgressionState,
        catalog: Catalog,
        remote_completions: Iterable[RemoteCompletion],
        *,
        floor: int = const.DEFAULT_WAVE_FLOOR,
        now_iso: str | None = None,
    ) -> list[Completion]:
        """Merge remote completions that are not present locally.

        Unknown entry ids and invalid ratings are skipped. Tiers reached by the
        merged completions are recorded silently: last_earned is left as is.
        Returns the merged completions.
        """
        entry_index = WaveEngine.build_entry_index(
            catalog, state[const.DATA_DYNAMIC_ENTRIES]
        )
        known = WaveEngine.completed_ids(state)
        timestamp = now_iso or _now_iso()

        merged: list[Completion] = []
        for remote in remote_completions:
            entry_id = remote.get(const.DATA_COMPLETION_ENTRY_ID)
            rating = remote.get(const.DATA_COMPLETION_RATING)
            if entry_id in known:
                continue
            if entry_id not in entry_index:
                const.LOGGER.debug(
                    "DEBUG: Rehydrate - Skipping unknown entry id: %s", entry_id
                )
                continue
            if not ProgressionEngine.validate_rating(rating):
                const.LOGGER.debug(
                    "DEBUG: Rehydrate - Skipping invalid rating %s for %s",
                    rating,
                    entry_id,
                )
                continue
            completion: Completion = {
                const.DATA_COMPLETION_ENTRY_ID: entry_id,
                const.DATA_COMPLETION_RATING: rating,
                const.DATA_COMPLETION_COMPLETED_AT: (
                    remote.get(const.DATA_COMPLETION_COMPLETED_AT) or timestamp
                ),
            }
            state[const.DATA_COMPLETIONS].append(completion)
            known.add(entry_id)
            merged.append(completion)

        # ensure_wave drops the merged ids from available before re-sorting
        WaveEngine.ensure_wave(state, catalog, floor)
        SeriesEngine.recompute_series_averages(state, catalog)

        categories = {
            entry_index[c[const.DATA_COMPLETION_ENTRY_ID]][const.DATA_ENTRY_CATEGORY]
            for c in merged
        }
        for category in sorted(categories):
            ProgressionEngine.record_tier(
                state, catalog, category, timestamp, notify=False
            )
        return merged

    # =========================================================================
    # LAST EARNED / ARTIFACTS
    # =========================================================================

    @staticmethod
    def dismiss_last_earned(state: ProgressionState) -> bool:
        """Clear the pending notification. Returns True if one was pending."""
        pending = state.get(const.DATA_LAST_EARNED) is not None
        state[const.DATA_LAST_EARNED] = None
        return pending

    @staticmethod
    def attach_artifact(
        state: ProgressionState, data: str
    ) -> AchievementRecord | None:
        """Attach a rendered artifact to last_earned and its log record.

        First render wins: returns None when nothing is pending or an artifact
        is already attached.
        """
        last = state.get(const.DATA_LAST_EARNED)
        if last is None or last.get(const.DATA_ACHIEVEMENT_ARTIFACT):
            return None

        category = last[const.DATA_ACHIEVEMENT_CATEGORY]
        label = last[const.DATA_ACHIEVEMENT_TIER_LABEL]
        for record in state[const.DATA_EARNED_ACHIEVEMENTS]:
            if (
                record[const.DATA_ACHIEVEMENT_CATEGORY] == category
                and record[const.DATA_ACHIEVEMENT_TIER_LABEL] == label
            ):
                if record.get(const.DATA_ACHIEVEMENT_ARTIFACT):
                    # log record rendered elsewhere; keep both in sync
                    last[const.DATA_ACHIEVEMENT_ARTIFACT] = record[
                        const.DATA_ACHIEVEMENT_ARTIFACT
                    ]
                    return None
                record[const.DATA_ACHIEVEMENT_ARTIFACT] = data

        last[const.DATA_ACHIEVEMENT_ARTIFACT] = data
        return last

    # =========================================================================
    # ELECTIVES / PROFILE
    # =========================================================================

    @staticmethod
    def make_elective(
        title: str,
        category: str,
        release_year: int,
        series: str | None = None,
        series_rank: int | None = None,
    ) -> CatalogEntry:
        """Build a user-added entry placed first within its year."""
        return {
            const.DATA_ENTRY_ID: f"{const.ELECTIVE_ID_PREFIX}{uuid.uuid4().hex}",
            const.DATA_ENTRY_TITLE: title,
            const.DATA_ENTRY_CATEGORY: category,
            const.DATA_ENTRY_RELEASE_YEAR: release_year,
            const.DATA_ENTRY_ORDER_INDEX: const.ELECTIVE_ORDER_INDEX,
            const.DATA_ENTRY_SERIES: series or None,
            const.DATA_ENTRY_SERIES_RANK: series_rank,
            const.DATA_ENTRY_IS_CUSTOM: True,
        }

    @staticmethod
    def add_elective(
        state: ProgressionState, catalog: Catalog, entry: CatalogEntry
    ) -> CatalogEntry:
        """Add entry to the dynamic pool unless its title is already known.

        Returns the entry that should be completed (existing or new).
        """
        title = entry[const.DATA_ENTRY_TITLE]
        existing = SeriesEngine.resolve_title(
            title, catalog, state[const.DATA_DYNAMIC_ENTRIES]
        )
        if existing is not None:
            return existing
        state[const.DATA_DYNAMIC_ENTRIES].append(entry)
        return entry

    @staticmethod
    def set_display_name(state: ProgressionState, name: str | None) -> None:
        """Store a trimmed display name; blank clears it."""
        cleaned = (name or "").strip()
        state[const.DATA_DISPLAY_NAME] = cleaned or None
