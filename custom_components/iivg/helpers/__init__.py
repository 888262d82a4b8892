# File: helpers/__init__.py
"""Helper modules for IIVG.

Submodules:
    - catalog_helpers: Catalog snapshot and JSON loader (no hass needed)
    - entity_helpers: Signal names, DeviceInfo and coordinator lookup
    - remote_store: aiohttp client for the remote completion store
"""

from . import catalog_helpers, entity_helpers, remote_store

__all__ = [
    "catalog_helpers",
    "entity_helpers",
    "remote_store",
]
