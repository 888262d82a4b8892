# File: helpers/catalog_helpers.py
"""Catalog snapshot and loader for the IIVG integration.

The catalog is a read-only snapshot of every course the progression engine can
surface. It is assembled from one directory per generation under the catalog
root:

    <root>/gen1/games.json    base entries (dealt by year waves)
    <root>/gen1/extra.json    extra entries (only surfaced by series unlocks)
    <root>/gen1/series.json   [{"series": "...", "games": ["title", ...]}]

Malformed or missing files degrade to empty lists; loading never raises.
File IO is blocking, so callers inside Home Assistant must run load_catalog()
in the executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import re
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ..type_defs import CatalogEntry, CatalogGeneration, EntryId


@dataclass(frozen=True, slots=True)
class Catalog:
    """Immutable catalog snapshot shared by every engine."""

    base_entries: tuple[CatalogEntry, ...] = ()
    extra_entries: tuple[CatalogEntry, ...] = ()
    series_index: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    entry_by_title: Mapping[str, CatalogEntry] = field(default_factory=dict)
    entry_by_id: Mapping[EntryId, CatalogEntry] = field(default_factory=dict)
    generations: tuple[CatalogGeneration, ...] = ()
    category_order: tuple[str, ...] = ()
    min_year: int = 0
    max_year: int = 0

    @property
    def all_entries(self) -> tuple[CatalogEntry, ...]:
        """Return base entries followed by extra entries."""
        return self.base_entries + self.extra_entries

    @property
    def base_ids(self) -> frozenset[EntryId]:
        """Return the ids of the base pool."""
        return frozenset(entry[const.DATA_ENTRY_ID] for entry in self.base_entries)

    @property
    def extra_ids(self) -> frozenset[EntryId]:
        """Return the ids of the extra pool."""
        return frozenset(entry[const.DATA_ENTRY_ID] for entry in self.extra_entries)

    @property
    def is_empty(self) -> bool:
        """Return True when the catalog holds no entries at all."""
        return not self.base_entries and not self.extra_entries


def normalize_entry(
    raw: Mapping[str, Any], generation: int | None = None
) -> CatalogEntry | None:
    """Convert one catalog JSON object into a CatalogEntry.

    Returns None for rows without an id, a title or an integer release year.
    """
    if not isinstance(raw, dict):
        return None

    entry_id = raw.get(const.JSON_ID)
    title = raw.get(const.JSON_TITLE)
    release_year = raw.get(const.JSON_RELEASE_YEAR)
    if not isinstance(entry_id, str) or not entry_id:
        return None
    if not isinstance(title, str) or not title:
        return None
    if isinstance(release_year, bool) or not isinstance(release_year, int):
        return None

    order_index = raw.get(const.JSON_ORDER_INDEX, 0)
    if isinstance(order_index, bool) or not isinstance(order_index, (int, float)):
        order_index = 0

    series = raw.get(const.JSON_SERIES)
    series_rank = raw.get(const.JSON_SERIES_INDEX)

    entry: CatalogEntry = {
        const.DATA_ENTRY_ID: entry_id,
        const.DATA_ENTRY_TITLE: title,
        const.DATA_ENTRY_CATEGORY: str(raw.get(const.JSON_CONSOLE) or ""),
        const.DATA_ENTRY_RELEASE_YEAR: release_year,
        const.DATA_ENTRY_ORDER_INDEX: order_index,
        const.DATA_ENTRY_SERIES: series if isinstance(series, str) and series else None,
        const.DATA_ENTRY_SERIES_RANK: (
            series_rank if isinstance(series_rank, int) else None
        ),
        const.DATA_ENTRY_IS_CUSTOM: bool(raw.get(const.JSON_CUSTOM, False)),
    }
    if generation is not None:
        entry[const.DATA_ENTRY_GENERATION] = generation
    return entry


def _merge_series(
    series_index: dict[str, list[str]], rows: Iterable[Any]
) -> None:
    """Append series titles in insertion order, skipping duplicates."""
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = row.get(const.JSON_SERIES)
        titles = row.get(const.JSON_SERIES_GAMES)
        if not isinstance(name, str) or not isinstance(titles, list):
            continue
        ordered = series_index.setdefault(name, [])
        for title in titles:
            if isinstance(title, str) and title not in ordered:
                ordered.append(title)


def _category_order(entries: Iterable[CatalogEntry]) -> tuple[str, ...]:
    """Order categories by first release year, then by name."""
    first_year: dict[str, int] = {}
    for entry in entries:
        category = entry[const.DATA_ENTRY_CATEGORY]
        year = entry[const.DATA_ENTRY_RELEASE_YEAR]
        if category not in first_year or year < first_year[category]:
            first_year[category] = year
    return tuple(sorted(first_year, key=lambda cat: (first_year[cat], cat)))


def build_catalog(
    base_entries: Iterable[CatalogEntry],
    extra_entries: Iterable[CatalogEntry] = (),
    series: Mapping[str, Iterable[str]] | None = None,
    generations: Iterable[CatalogGeneration] = (),
) -> Catalog:
    """Assemble an immutable Catalog from already-normalized entries."""
    base = tuple(base_entries)
    extra = tuple(extra_entries)

    # index by title: base first, extras only fill gaps
    by_title: dict[str, CatalogEntry] = {}
    by_id: dict[EntryId, CatalogEntry] = {}
    for entry in base + extra:
        by_title.setdefault(entry[const.DATA_ENTRY_TITLE], entry)
        by_id.setdefault(entry[const.DATA_ENTRY_ID], entry)

    series_index: dict[str, list[str]] = {}
    for name, titles in (series or {}).items():
        _merge_series(
            series_index,
            [{const.JSON_SERIES: name, const.JSON_SERIES_GAMES: list(titles)}],
        )

    years = [entry[const.DATA_ENTRY_RELEASE_YEAR] for entry in base + extra]

    return Catalog(
        base_entries=base,
        extra_entries=extra,
        series_index={name: tuple(titles) for name, titles in series_index.items()},
        entry_by_title=by_title,
        entry_by_id=by_id,
        generations=tuple(generations),
        category_order=_category_order(base + extra),
        min_year=min(years) if years else 0,
        max_year=max(years) if years else 0,
    )


def _safe_read_json(path: Path, fallback: list[Any]) -> list[Any]:
    """Read a JSON list from disk, returning fallback on any read/parse problem."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return fallback
    except (OSError, ValueError) as err:
        const.LOGGER.debug("DEBUG: Catalog - Could not read %s: %s", path, err)
        return fallback
    return payload if isinstance(payload, list) else fallback


def _list_generation_dirs(root: Path) -> list[tuple[int, Path]]:
    """Return (index, path) for every gen<N> directory, sorted by N."""
    if not root.is_dir():
        return []
    pattern = re.compile(const.CATALOG_GEN_DIR_PATTERN, re.IGNORECASE)
    found: list[tuple[int, Path]] = []
    for child in root.iterdir():
        match = pattern.match(child.name)
        if match and child.is_dir():
            found.append((int(match.group(1)), child))
    return sorted(found)


def load_catalog(data_root: str | Path) -> Catalog:
    """Load every generation directory under data_root into a Catalog."""
    root = Path(data_root)
    base: list[CatalogEntry] = []
    extra: list[CatalogEntry] = []
    series_index: dict[str, list[str]] = {}
    generations: list[CatalogGeneration] = []

    for gen_index, gen_dir in _list_generation_dirs(root):
        gen_base = [
            entry
            for raw in _safe_read_json(gen_dir / const.CATALOG_FILE_BASE, [])
            if (entry := normalize_entry(raw, gen_index)) is not None
        ]
        gen_extra = [
            entry
            for raw in _safe_read_json(gen_dir / const.CATALOG_FILE_EXTRA, [])
            if (entry := normalize_entry(raw, gen_index)) is not None
        ]
        _merge_series(
            series_index, _safe_read_json(gen_dir / const.CATALOG_FILE_SERIES, [])
        )

        base.extend(gen_base)
        extra.extend(gen_extra)

        gen_years = [e[const.DATA_ENTRY_RELEASE_YEAR] for e in gen_base + gen_extra]
        if gen_years:
            generations.append(
                {
                    "index": gen_index,
                    "name": gen_dir.name,
                    "min_year": min(gen_years),
                    "max_year": max(gen_years),
                }
            )

    catalog = build_catalog(base, extra, series_index, generations)
    const.LOGGER.debug(
        "DEBUG: Catalog loaded from %s: %s",
        root,
        {
            "base": len(catalog.base_entries),
            "extra": len(catalog.extra_entries),
            "series": len(catalog.series_index),
            "generations": len(catalog.generations),
            "years": (catalog.min_year, catalog.max_year),
        },
    )
    return catalog
