"""Achievement Engine - Pure logic for the per-category diploma ladder.

This engine provides stateless, pure Python functions for:
- Mapping a completion count to a tier label (highest threshold reached)
- Ranking tier labels (1-based position in the ladder)
- Listing the tiers a category has crossed since its best record
- Selecting the artifact template for a (tier, category) pair
- Summarizing completions and earned records per category

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
ProgressionManager decides when records are appended and notified.

Failure mode: none. Unknown labels resolve to "no tier" and unknown
categories to offset 0.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import (
        AchievementRecord,
        CatalogEntry,
        CategorySummary,
        Completion,
        EntryId,
    )


class AchievementEngine:
    """Pure logic engine for tier evaluation.

    All methods are static - no instance state. The ladder defaults to
    const.DEGREE_STEPS but every method accepts an alternative table of
    (threshold, label) pairs sorted by ascending threshold.
    """

    @staticmethod
    def tier_for_count(
        count: int,
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> str | None:
        """Return the label of the highest threshold not exceeding count."""
        for threshold, label in reversed(steps):
            if count >= threshold:
                return label
        return None

    @staticmethod
    def tier_rank(
        label: str | None,
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> int | None:
        """Return the 1-based position of label in the ladder, or None."""
        if label is None:
            return None
        for position, (_, step_label) in enumerate(steps, start=1):
            if step_label == label:
                return position
        return None

    @staticmethod
    def next_tier(
        count: int,
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> tuple[str, int] | None:
        """Return (label, completions still needed) for the next rung, or None at the top."""
        for threshold, label in steps:
            if count < threshold:
                return label, threshold - count
        return None

    @staticmethod
    def artifact_index(
        label: str | None,
        category: str,
        category_order: Sequence[str],
        span: int = const.ARTIFACT_TEMPLATE_SPAN,
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> int:
        """Return the template number for the (tier, category) certificate.

        index = 1 + (rank - 1) * span + position of category in category_order.
        A missing category contributes 0; an unknown label is treated as rank 1.
        """
        rank = AchievementEngine.tier_rank(label, steps) or 1
        base_offset = 1 + (rank - 1) * span
        try:
            position = list(category_order).index(category)
        except ValueError:
            position = 0
        return base_offset + position

    @staticmethod
    def count_for_category(
        category: str,
        completions: Iterable[Completion],
        entry_index: Mapping[EntryId, CatalogEntry],
    ) -> int:
        """Count distinct completed entries belonging to category."""
        seen: set[EntryId] = set()
        for completion in completions:
            entry_id = completion[const.DATA_COMPLETION_ENTRY_ID]
            entry = entry_index.get(entry_id)
            if entry is None or entry_id in seen:
                continue
            if entry[const.DATA_ENTRY_CATEGORY] == category:
                seen.add(entry_id)
        return len(seen)

    @staticmethod
    def highest_rank_recorded(
        category: str,
        earned: Iterable[AchievementRecord],
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> int:
        """Return the best rank already recorded for category (0 if none)."""
        best = 0
        for record in earned:
            if record[const.DATA_ACHIEVEMENT_CATEGORY] != category:
                continue
            rank = AchievementEngine.tier_rank(
                record[const.DATA_ACHIEVEMENT_TIER_LABEL], steps
            )
            if rank and rank > best:
                best = rank
        return best

    @staticmethod
    def crossed_tiers(
        category: str,
        completions: Iterable[Completion],
        earned: Iterable[AchievementRecord],
        entry_index: Mapping[EntryId, CatalogEntry],
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> list[str]:
        """Return every tier label above the recorded best, lowest first.

        A jump from 0 to 5 completions yields both the 3 and 5 thresholds.
        """
        count = AchievementEngine.count_for_category(category, completions, entry_index)
        best = AchievementEngine.highest_rank_recorded(category, earned, steps)
        return [
            label
            for rank, (threshold, label) in enumerate(steps, start=1)
            if rank > best and count >= threshold
        ]

    @staticmethod
    def highest_by_category(
        earned: Iterable[AchievementRecord],
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> list[AchievementRecord]:
        """Keep only the best record per category, sorted by category."""
        best: dict[str, AchievementRecord] = {}
        for record in earned:
            category = record[const.DATA_ACHIEVEMENT_CATEGORY]
            current = best.get(category)
            rank = AchievementEngine.tier_rank(
                record[const.DATA_ACHIEVEMENT_TIER_LABEL], steps
            ) or 0
            if current is None or rank > (
                AchievementEngine.tier_rank(
                    current[const.DATA_ACHIEVEMENT_TIER_LABEL], steps
                )
                or 0
            ):
                best[category] = record
        return [best[category] for category in sorted(best)]

    @staticmethod
    def category_summaries(
        completions: Iterable[Completion],
        entry_index: Mapping[EntryId, CatalogEntry],
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> list[CategorySummary]:
        """Return completion counts and the highest tier reached per category."""
        counts: dict[str, set[EntryId]] = {}
        for completion in completions:
            entry_id = completion[const.DATA_COMPLETION_ENTRY_ID]
            entry = entry_index.get(entry_id)
            if entry is None:
                continue
            counts.setdefault(entry[const.DATA_ENTRY_CATEGORY], set()).add(entry_id)

        return [
            {
                const.DATA_SUMMARY_CATEGORY: category,
                const.DATA_SUMMARY_COUNT: len(ids),
                const.DATA_SUMMARY_HIGHEST: AchievementEngine.tier_for_count(
                    len(ids), steps
                ),
            }
            for category, ids in sorted(counts.items())
        ]

    @staticmethod
    def has_any_achievement(
        completions: Sequence[Completion],
        steps: Sequence[tuple[int, str]] = const.DEGREE_STEPS,
    ) -> bool:
        """Return True once the total completion count reaches the first rung."""
        if not steps:
            return False
        return len(completions) >= steps[0][0]
