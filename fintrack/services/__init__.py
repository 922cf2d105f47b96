"""
Services package.

Storage backends are re-exported here. The higher-level services
(accounts, exchange, export) build on the stores, which build on storage,
so import them from their own modules.
"""

from fintrack.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "StorageError",
]
