"""Engine modules for IIVG integration.

Contains pure computation engines (no Home Assistant imports):
- wave_engine: Year-wave dealing and available-list ordering
- series_engine: Series unlocks and per-series rating averages
- achievement_engine: Degree ladder evaluation and certificate numbering
- progression_engine: State transitions composed from the engines above
"""

# Use relative imports within package to avoid mypy module resolution issues
from .achievement_engine import AchievementEngine
from .progression_engine import CompletionOutcome, ProgressionEngine
from .series_engine import SeriesEngine
from .wave_engine import WaveEngine

__all__ = [
    "AchievementEngine",
    "CompletionOutcome",
    "ProgressionEngine",
    "SeriesEngine",
    "WaveEngine",
]
