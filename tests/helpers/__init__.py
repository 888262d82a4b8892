"""Test helpers for IIVG integration tests.

    from tests.helpers import make_entry, make_catalog, write_catalog
"""

from tests.helpers.builders import (
    make_catalog,
    make_completion,
    make_entry,
    make_state,
    write_catalog,
)

__all__ = [
    "make_catalog",
    "make_completion",
    "make_entry",
    "make_state",
    "write_catalog",
]
