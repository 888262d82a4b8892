"""Unit tests for WaveEngine - pure Python logic tests.

These tests verify year-wave dealing and available-list ordering without any
Home Assistant mocking.

Test Categories:
- Sort keys
- Entry index construction
- Dealing a single year
- ensure_wave floor behavior
- restore_order invariants
"""

from __future__ import annotations

from custom_components.iivg import const
from custom_components.iivg.engines.wave_engine import WaveEngine
from tests.helpers import make_catalog, make_completion, make_entry, make_state

# =============================================================================
# Test: sort keys
# =============================================================================


class TestSortKeys:
    """Tests for the within-year and global ordering keys."""

    def test_higher_order_index_comes_first(self) -> None:
        """Test that order_index sorts descending inside a year."""
        low = make_entry("low", 1980, title="A", order_index=1)
        high = make_entry("high", 1980, title="B", order_index=2)

        ordered = sorted([low, high], key=WaveEngine.global_key)

        assert [e[const.DATA_ENTRY_ID] for e in ordered] == ["high", "low"]

    def test_title_breaks_ties(self) -> None:
        """Test that equal year and order_index fall back to title."""
        zelda = make_entry("z", 1986, title="Zelda")
        metroid = make_entry("m", 1986, title="Metroid")

        ordered = sorted([zelda, metroid], key=WaveEngine.within_year_key)

        assert [e[const.DATA_ENTRY_TITLE] for e in ordered] == ["Metroid", "Zelda"]

    def test_year_dominates(self) -> None:
        """Test that an older entry precedes a newer one regardless of order."""
        old = make_entry("old", 1977, order_index=0)
        new = make_entry("new", 1978, order_index=50)

        assert WaveEngine.global_key(old) < WaveEngine.global_key(new)


# =============================================================================
# Test: build_entry_index
# =============================================================================


class TestBuildEntryIndex:
    """Tests for id lookups across base, extra and dynamic pools."""

    def test_includes_every_pool(self) -> None:
        """Test base, extra and dynamic ids are all indexed."""
        catalog = make_catalog(
            [make_entry("base", 1980)], extra=[make_entry("extra", 1981)]
        )
        dynamic = [make_entry("custom-1", 1982)]

        index = WaveEngine.build_entry_index(catalog, dynamic)

        assert set(index) == {"base", "extra", "custom-1"}

    def test_catalog_wins_over_dynamic(self) -> None:
        """Test a dynamic copy of a catalog id does not shadow the catalog entry."""
        catalog = make_catalog([make_entry("pong", 1972, title="Pong")])
        dynamic = [make_entry("pong", 1999, title="Pong (copy)")]

        index = WaveEngine.build_entry_index(catalog, dynamic)

        assert index["pong"][const.DATA_ENTRY_RELEASE_YEAR] == 1972


# =============================================================================
# Test: deal_year
# =============================================================================


class TestDealYear:
    """Tests for releasing one year's batch."""

    def test_deals_base_and_dynamic_entries_in_order(self) -> None:
        """Test the batch holds base plus dynamic entries sorted within the year."""
        catalog = make_catalog(
            [
                make_entry("a", 1980, title="Alpha", order_index=1),
                make_entry("b", 1980, title="Beta", order_index=3),
                make_entry("other", 1981),
            ]
        )
        state = make_state(
            dynamic_entries=[make_entry("custom-x", 1980, order_index=999)]
        )

        dealt = WaveEngine.deal_year(state, catalog, 1980)

        assert dealt == ["custom-x", "b", "a"]
        assert state[const.DATA_RELEASED_WAVES] == [1980]

    def test_extra_entries_are_not_dealt(self) -> None:
        """Test extra-pool entries wait for a series unlock."""
        catalog = make_catalog(
            [make_entry("base", 1980)], extra=[make_entry("extra", 1980)]
        )
        state = make_state()

        assert WaveEngine.deal_year(state, catalog, 1980) == ["base"]

    def test_skips_completed_and_available(self) -> None:
        """Test already surfaced or finished entries are not dealt again."""
        catalog = make_catalog(
            [make_entry("a", 1980), make_entry("b", 1980), make_entry("c", 1980)]
        )
        state = make_state(
            available_ids=["a"], completions=[make_completion("b")]
        )

        assert WaveEngine.deal_year(state, catalog, 1980) == ["c"]

    def test_empty_year_is_not_recorded(self) -> None:
        """Test a year without entries leaves released_waves untouched."""
        catalog = make_catalog([make_entry("a", 1980)])
        state = make_state()

        assert WaveEngine.deal_year(state, catalog, 1975) == []
        assert state[const.DATA_RELEASED_WAVES] == []


# =============================================================================
# Test: ensure_wave
# =============================================================================


class TestEnsureWave:
    """Tests for keeping the visible list above the floor."""

    def test_releases_years_until_floor_met(self) -> None:
        """Test whole years are dealt until floor entries are visible."""
        catalog = make_catalog(
            [make_entry("y77", 1977), make_entry("y78", 1978), make_entry("y79", 1979)]
        )
        state = make_state(year_cursor=1977)

        WaveEngine.ensure_wave(state, catalog, floor=2)

        assert state[const.DATA_AVAILABLE_IDS] == ["y77", "y78"]
        assert state[const.DATA_YEAR_CURSOR] == 1979

    def test_stops_at_catalog_end(self) -> None:
        """Test the cursor passing max_year ends dealing below the floor."""
        catalog = make_catalog([make_entry("only", 1980)])
        state = make_state(year_cursor=1980)

        WaveEngine.ensure_wave(state, catalog, floor=5)

        assert state[const.DATA_AVAILABLE_IDS] == ["only"]
        assert state[const.DATA_YEAR_CURSOR] == 1981

    def test_skips_gap_years(self) -> None:
        """Test years without entries advance the cursor without dealing."""
        catalog = make_catalog([make_entry("a", 1980), make_entry("b", 1985)])
        state = make_state(year_cursor=1980)

        WaveEngine.ensure_wave(state, catalog, floor=2)

        assert state[const.DATA_AVAILABLE_IDS] == ["a", "b"]
        assert state[const.DATA_RELEASED_WAVES] == [1980, 1985]
        assert state[const.DATA_YEAR_CURSOR] == 1986

    def test_floor_already_met_changes_nothing(self) -> None:
        """Test no year is dealt when enough entries are visible."""
        catalog = make_catalog(
            [make_entry("a", 1980), make_entry("b", 1980), make_entry("c", 1981)]
        )
        state = make_state(available_ids=["a", "b"], year_cursor=1981)

        WaveEngine.ensure_wave(state, catalog, floor=2)

        assert state[const.DATA_AVAILABLE_IDS] == ["a", "b"]
        assert state[const.DATA_YEAR_CURSOR] == 1981

    def test_floor_or_end_holds_after_every_call(self) -> None:
        """Test visible >= floor unless the cursor passed the last year."""
        catalog = make_catalog([make_entry(f"e{year}", year) for year in range(1980, 1990)])
        state = make_state(year_cursor=1980)

        for floor in (1, 3, 4, 20):
            WaveEngine.ensure_wave(state, catalog, floor=floor)
            assert (
                WaveEngine.visible_count(state) >= floor
                or state[const.DATA_YEAR_CURSOR] > catalog.max_year
            )

    def test_empty_catalog(self) -> None:
        """Test an empty catalog is a valid steady state."""
        catalog = make_catalog([])
        state = make_state()

        WaveEngine.ensure_wave(state, catalog, floor=2)

        assert state[const.DATA_AVAILABLE_IDS] == []


# =============================================================================
# Test: restore_order
# =============================================================================


class TestRestoreOrder:
    """Tests for the single invariant-restoring pass."""

    def test_sorts_by_global_key(self) -> None:
        """Test B(order 2, title A) precedes A(order 1, title B) in the same year."""
        catalog = make_catalog(
            [
                make_entry("A", 1980, title="B", order_index=1),
                make_entry("B", 1980, title="A", order_index=2),
                make_entry("old", 1979),
            ]
        )
        state = make_state(available_ids=["A", "B", "old"])

        WaveEngine.restore_order(state, catalog)

        assert state[const.DATA_AVAILABLE_IDS] == ["old", "B", "A"]

    def test_drops_completed_duplicate_and_unknown_ids(self) -> None:
        """Test completed, repeated and unknown ids are removed."""
        catalog = make_catalog([make_entry("a", 1980), make_entry("b", 1980)])
        state = make_state(
            available_ids=["a", "ghost", "a", "b"],
            completions=[make_completion("b")],
        )

        WaveEngine.restore_order(state, catalog)

        assert state[const.DATA_AVAILABLE_IDS] == ["a"]

    def test_keeps_dynamic_entries(self) -> None:
        """Test ids from the dynamic pool are known entries."""
        catalog = make_catalog([make_entry("a", 1980)])
        state = make_state(
            available_ids=["custom-1", "a"],
            dynamic_entries=[make_entry("custom-1", 1980, order_index=999)],
        )

        WaveEngine.restore_order(state, catalog)

        assert state[const.DATA_AVAILABLE_IDS] == ["custom-1", "a"]
