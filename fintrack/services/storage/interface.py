"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists through a plain key/value interface.
This allows us to:
1. Keep records in Google Sheets for people who want to see their data
2. Use in-memory storage for testing and local runs
3. Keep every business rule out of the storage layer

The interface is intentionally tiny - get, set, remove on opaque bytes.
The stores in fintrack.stores decide what the bytes mean.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for the persistence backend.

    Any backend (Google Sheets, in-memory, ...) must implement these methods.
    A set() must be visible to the very next get() of the same key.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Read the value stored under a key.

        Args:
            key: Physical record key (already namespaced)

        Returns:
            The stored bytes, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """
        Store a value, replacing whatever was there.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is not an error.
        """
        pass

    async def contains(self, key: str) -> bool:
        """Check whether a key holds a value."""
        return await self.get(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
