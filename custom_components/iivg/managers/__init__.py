"""Manager modules for IIVG integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .progression_manager import ProgressionManager

__all__ = [
    "BaseManager",
    "ProgressionManager",
]
