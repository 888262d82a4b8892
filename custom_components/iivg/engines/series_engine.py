"""Series Engine - Pure logic for series averages and follow-up unlocks.

This engine provides stateless, pure Python functions for:
- Recomputing the mean rating per series over all completions
- Finding the next not yet completed entry of a series
- Injecting that entry into the dynamic pool when a completion qualifies

Qualification policy: the rating given to the just-completed entry must be at
least the unlock rating (default 8). The running series average is tracked
for display but does not gate unlocks.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
Functions taking a ProgressionState modify it in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from .. import const
from .wave_engine import WaveEngine

if TYPE_CHECKING:
    from ..helpers.catalog_helpers import Catalog
    from ..type_defs import CatalogEntry, Completion, EntryId, ProgressionState


class SeriesEngine:
    """Pure logic engine for series tracking and unlocks."""

    @staticmethod
    def compute_series_averages(
        completions: Iterable[Completion],
        entry_index: Mapping[EntryId, CatalogEntry],
        precision: int = const.SERIES_AVERAGE_PRECISION,
    ) -> dict[str, float]:
        """Return the rounded mean rating of completed entries per series."""
        totals: dict[str, list[int]] = {}
        for completion in completions:
            entry = entry_index.get(completion[const.DATA_COMPLETION_ENTRY_ID])
            if entry is None:
                continue
            series = entry.get(const.DATA_ENTRY_SERIES)
            if not series:
                continue
            bucket = totals.setdefault(series, [0, 0])
            bucket[0] += completion[const.DATA_COMPLETION_RATING]
            bucket[1] += 1

        return {
            series: round(rating_sum / count, precision)
            for series, (rating_sum, count) in totals.items()
        }

    @staticmethod
    def recompute_series_averages(
        state: ProgressionState, catalog: Catalog
    ) -> ProgressionState:
        """Replace state's series averages with a full recompute."""
        entry_index = WaveEngine.build_entry_index(
            catalog, state[const.DATA_DYNAMIC_ENTRIES]
        )
        state[const.DATA_SERIES_AVERAGES] = SeriesEngine.compute_series_averages(
            state[const.DATA_COMPLETIONS], entry_index
        )
        return state

    @staticmethod
    def resolve_title(
        title: str, catalog: Catalog, dynamic_entries: Iterable[CatalogEntry] = ()
    ) -> CatalogEntry | None:
        """Resolve a series title to an entry (catalog first, then dynamic)."""
        entry = catalog.entry_by_title.get(title)
        if entry is not None:
            return entry
        for dynamic in dynamic_entries:
            if dynamic[const.DATA_ENTRY_TITLE] == title:
                return dynamic
        return None

    @staticmethod
    def next_in_series(
        entry: CatalogEntry, state: ProgressionState, catalog: Catalog
    ) -> CatalogEntry | None:
        """Return the first series member after entry that is not completed.

        Titles missing from the catalog are skipped.
        """
        series = entry.get(const.DATA_ENTRY_SERIES)
        if not series:
            return None
        titles = catalog.series_index.get(series)
        if not titles:
            return None

        completed = WaveEngine.completed_ids(state)
        current_title = entry[const.DATA_ENTRY_TITLE]
        for title in titles:
            if title == current_title:
                continue
            candidate = SeriesEngine.resolve_title(
                title, catalog, state[const.DATA_DYNAMIC_ENTRIES]
            )
            if candidate is None:
                continue
            if candidate[const.DATA_ENTRY_ID] in completed:
                continue
            return candidate
        return None

    @staticmethod
    def qualifies(
        rating: int, unlock_rating: int = const.DEFAULT_SERIES_UNLOCK_RATING
    ) -> bool:
        """Return True when a rating is high enough to unlock the next entry."""
        return rating >= unlock_rating

    @staticmethod
    def maybe_inject(
        state: ProgressionState,
        catalog: Catalog,
        entry: CatalogEntry,
        rating: int,
        unlock_rating: int = const.DEFAULT_SERIES_UNLOCK_RATING,
    ) -> CatalogEntry | None:
        """Surface the next entry of entry's series when rating qualifies.

        The candidate joins the dynamic pool unless it is already a base or
        dynamic entry. When its year has already been released (or the cursor
        has moved past it) it is also made available right away; otherwise it
        waits for its year wave.

        Returns the candidate when the state changed, None otherwise.
        """
        if not SeriesEngine.qualifies(rating, unlock_rating):
            return None

        candidate = SeriesEngine.next_in_series(entry, state, catalog)
        if candidate is None:
            return None

        candidate_id = candidate[const.DATA_ENTRY_ID]
        changed = False

        dynamic_ids = {e[const.DATA_ENTRY_ID] for e in state[const.DATA_DYNAMIC_ENTRIES]}
        if candidate_id not in catalog.base_ids and candidate_id not in dynamic_ids:
            state[const.DATA_DYNAMIC_ENTRIES].append(candidate)
            changed = True

        # a year the cursor already passed will never be dealt again
        candidate_year = candidate[const.DATA_ENTRY_RELEASE_YEAR]
        year_released = (
            candidate_year in state[const.DATA_RELEASED_WAVES]
            or candidate_year < state[const.DATA_YEAR_CURSOR]
        )
        if (
            year_released
            and candidate_id not in state[const.DATA_AVAILABLE_IDS]
            and candidate_id not in WaveEngine.completed_ids(state)
        ):
            state[const.DATA_AVAILABLE_IDS].append(candidate_id)
            WaveEngine.restore_order(state, catalog)
            changed = True

        if changed:
            const.LOGGER.debug(
                "DEBUG: Series - Unlocked '%s' after rating %s on '%s'",
                candidate[const.DATA_ENTRY_TITLE],
                rating,
                entry[const.DATA_ENTRY_TITLE],
            )
            return candidate
        return None
