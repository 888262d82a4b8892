"""Wave Engine - Pure logic for releasing catalog entries year by year.

This engine provides stateless, pure Python functions for:
- Building the id index over base, extra and dynamic entries
- Dealing the entries of one release year into the available list
- Advancing the year cursor until enough entries are visible
- Restoring the available-list invariants (no completed or unknown ids,
  global ordering by year ASC, order_index DESC, title ASC)

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods. Functions taking a ProgressionState modify
it in place and return it for convenience; ProgressionManager owns the state
and decides when these run.

Year pools only draw from base and dynamic entries. Extra entries stay hidden
until a series unlock promotes them into the dynamic pool.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..helpers.catalog_helpers import Catalog
    from ..type_defs import CatalogEntry, EntryId, ProgressionState


class WaveEngine:
    """Pure logic engine for the timed reveal of catalog entries."""

    @staticmethod
    def within_year_key(entry: CatalogEntry) -> tuple[float, str]:
        """Sort key inside one year: order_index DESC, then title ASC."""
        return (-entry[const.DATA_ENTRY_ORDER_INDEX], entry[const.DATA_ENTRY_TITLE])

    @staticmethod
    def global_key(entry: CatalogEntry) -> tuple[int, float, str]:
        """Sort key across years: release_year ASC, order_index DESC, title ASC."""
        return (
            entry[const.DATA_ENTRY_RELEASE_YEAR],
            -entry[const.DATA_ENTRY_ORDER_INDEX],
            entry[const.DATA_ENTRY_TITLE],
        )

    @staticmethod
    def build_entry_index(
        catalog: Catalog, dynamic_entries: Iterable[CatalogEntry] = ()
    ) -> dict[EntryId, CatalogEntry]:
        """Map every known id (base, extra, dynamic) to its entry.

        Catalog entries win over dynamic entries that reuse the same id.
        """
        index: dict[EntryId, CatalogEntry] = {}
        for entry in dynamic_entries:
            index.setdefault(entry[const.DATA_ENTRY_ID], entry)
        index.update(catalog.entry_by_id)
        return index

    @staticmethod
    def completed_ids(state: ProgressionState) -> set[EntryId]:
        """Return the set of completed entry ids."""
        return {
            completion[const.DATA_COMPLETION_ENTRY_ID]
            for completion in state[const.DATA_COMPLETIONS]
        }

    @staticmethod
    def entries_for_year(
        year: int, catalog: Catalog, dynamic_entries: Iterable[CatalogEntry] = ()
    ) -> list[CatalogEntry]:
        """Return base and dynamic entries released in year, sorted within the year."""
        seen: set[EntryId] = set()
        pool: list[CatalogEntry] = []
        for entry in (*catalog.base_entries, *dynamic_entries):
            entry_id = entry[const.DATA_ENTRY_ID]
            if entry[const.DATA_ENTRY_RELEASE_YEAR] != year or entry_id in seen:
                continue
            seen.add(entry_id)
            pool.append(entry)
        return sorted(pool, key=WaveEngine.within_year_key)

    @staticmethod
    def visible_count(state: ProgressionState) -> int:
        """Count available entries that are not completed."""
        completed = WaveEngine.completed_ids(state)
        return sum(1 for entry_id in state[const.DATA_AVAILABLE_IDS] if entry_id not in completed)

    @staticmethod
    def deal_year(
        state: ProgressionState, catalog: Catalog, year: int
    ) -> list[EntryId]:
        """Append the not yet available, not completed entries of year.

        The year is recorded in released_waves only when something was dealt.
        Returns the ids that were added.
        """
        completed = WaveEngine.completed_ids(state)
        available = set(state[const.DATA_AVAILABLE_IDS])
        batch = [
            entry[const.DATA_ENTRY_ID]
            for entry in WaveEngine.entries_for_year(
                year, catalog, state[const.DATA_DYNAMIC_ENTRIES]
            )
            if entry[const.DATA_ENTRY_ID] not in completed
            and entry[const.DATA_ENTRY_ID] not in available
        ]
        if batch:
            if year not in state[const.DATA_RELEASED_WAVES]:
                state[const.DATA_RELEASED_WAVES].append(year)
            state[const.DATA_AVAILABLE_IDS].extend(batch)
        return batch

    @staticmethod
    def ensure_wave(
        state: ProgressionState,
        catalog: Catalog,
        floor: int = const.DEFAULT_WAVE_FLOOR,
    ) -> ProgressionState:
        """Release whole years until at least floor entries are visible.

        Stops early once the cursor passes the catalog's last year; fewer than
        floor visible entries at that point is the normal end of the catalog.
        Always finishes with restore_order().
        """
        # unknown ids from a restored snapshot must not count toward the floor
        WaveEngine.restore_order(state, catalog)
        while (
            WaveEngine.visible_count(state) < floor
            and state[const.DATA_YEAR_CURSOR] <= catalog.max_year
        ):
            year = state[const.DATA_YEAR_CURSOR]
            dealt = WaveEngine.deal_year(state, catalog, year)
            if dealt:
                const.LOGGER.debug(
                    "DEBUG: Wave - Released %s entries for year %s", len(dealt), year
                )
            state[const.DATA_YEAR_CURSOR] = year + 1

        return WaveEngine.restore_order(state, catalog)

    @staticmethod
    def restore_order(
        state: ProgressionState,
        catalog: Catalog,
        entry_index: Mapping[EntryId, CatalogEntry] | None = None,
    ) -> ProgressionState:
        """Drop completed, unknown and repeated ids, then apply the global order."""
        if entry_index is None:
            entry_index = WaveEngine.build_entry_index(
                catalog, state[const.DATA_DYNAMIC_ENTRIES]
            )
        completed = WaveEngine.completed_ids(state)

        kept: list[EntryId] = []
        seen: set[EntryId] = set()
        for entry_id in state[const.DATA_AVAILABLE_IDS]:
            if entry_id in completed or entry_id in seen:
                continue
            if entry_id not in entry_index:
                const.LOGGER.debug(
                    "DEBUG: Wave - Dropping unknown entry id from available: %s",
                    entry_id,
                )
                continue
            seen.add(entry_id)
            kept.append(entry_id)

        kept.sort(key=lambda entry_id: WaveEngine.global_key(entry_index[entry_id]))
        state[const.DATA_AVAILABLE_IDS] = kept
        return state
