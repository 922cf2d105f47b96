"""
Storage Services Package

Provides the abstract key/value interface and its backends.
Google Sheets backs real use; the in-memory store backs tests and local runs.
"""

from fintrack.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)
from fintrack.services.storage.memory import InMemoryKeyValueStore
from fintrack.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interfaces
    "KeyValueStore",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Backends
    "InMemoryKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
]
