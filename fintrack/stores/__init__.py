"""
Stores Package

One store per persisted record. Every method takes the ProfileContext it
operates in; the stores hold no notion of a current profile.
"""

from fintrack.stores.base import CorruptRecordError, RecordStore, ListRecordStore
from fintrack.stores.transactions import TransactionStore
from fintrack.stores.settings import SettingsStore
from fintrack.stores.goals import GoalStore
from fintrack.stores.users import InvalidPinError, PinStore, UserStore
from fintrack.stores.migrations import SETTINGS_MIGRATIONS, migrate_settings

__all__ = [
    "CorruptRecordError",
    "RecordStore",
    "ListRecordStore",
    "TransactionStore",
    "SettingsStore",
    "GoalStore",
    "UserStore",
    "PinStore",
    "InvalidPinError",
    "SETTINGS_MIGRATIONS",
    "migrate_settings",
]
