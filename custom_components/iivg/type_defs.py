"""Type definitions for IIVG data structures.

TypedDict is used for the persisted, JSON-shaped structures (catalog entries,
completions, achievement records and the progression snapshot). The keys match
the DATA_* constants in const.py.

IMPORTANT: This file must NOT import from coordinator.py, managers or helpers
to avoid circular dependencies. Only typing machinery is imported here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime defaults (.get() fallbacks)
remain in the engines and the store.
"""

from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

EntryId = str  # Catalog id ("pong-1972") or elective id ("custom-<hex>")
SeriesName = str
Category = str  # Console / platform name
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"


# =============================================================================
# Catalog
# =============================================================================


class CatalogEntry(TypedDict):
    """A single completable course (game).

    Immutable once loaded. order_index breaks ties within a year (higher first).
    """

    id: EntryId
    title: str
    category: Category
    release_year: int
    order_index: float
    series_name: NotRequired[SeriesName | None]
    series_rank: NotRequired[int | None]
    is_custom: NotRequired[bool]
    generation: NotRequired[int]


class CatalogGeneration(TypedDict):
    """Year span covered by one gen<N> catalog directory."""

    index: int
    name: str
    min_year: int
    max_year: int


# =============================================================================
# Progression
# =============================================================================


class Completion(TypedDict):
    """One entry in the append-only completion log."""

    entry_id: EntryId
    rating: int
    completed_at: ISODatetime


class AchievementRecord(TypedDict):
    """An earned tier for one category. Never revoked once appended."""

    category: Category
    tier_label: str
    earned_at: ISODatetime
    rendered_artifact: NotRequired[str | None]


class ProgressionState(TypedDict):
    """The central mutable aggregate for one user.

    Mutated only by ProgressionManager; persisted whole by IIVGStore.
    """

    display_name: str | None
    available_ids: list[EntryId]
    completions: list[Completion]
    released_waves: list[int]
    year_cursor: int
    dynamic_entries: list[CatalogEntry]
    series_averages: dict[SeriesName, float]
    earned_achievements: list[AchievementRecord]
    last_earned: AchievementRecord | None


class CategorySummary(TypedDict):
    """Per-category completion count and highest tier reached."""

    category: Category
    count: int
    highest: str | None


class RemoteCompletion(TypedDict):
    """Completion row as returned by the remote completion store."""

    entry_id: EntryId
    rating: int
    completed_at: ISODatetime | None
