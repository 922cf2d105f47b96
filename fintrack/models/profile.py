"""
Profile Context

DESIGN DECISION: There is no ambient "current profile". Every store call
receives a ProfileContext, and the context is the only thing that can turn
a logical record name into a physical key. Code that forgets to pass it
does not run; code that passes the wrong one is visible at the call site.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ProfileNamespace(str, Enum):
    """Which isolated copy of the user's data an operation targets."""
    REAL = "real"
    FOREIGN = "foreign"  # Decoy data set shown instead of the real one


class RecordKey(str, Enum):
    """Logical records that exist once per profile."""
    TRANSACTIONS = "transactions"
    USER = "user"
    SETTINGS = "settings"
    GOALS = "goals"
    EXCHANGE_RATES = "exchange_rates"


class SharedKey(str, Enum):
    """Records shared by both profiles (one device, one lock)."""
    APP_MODE = "app_mode"
    PIN = "pin"


DEFAULT_KEY_PREFIX = "fintrack_"
FOREIGN_INFIX = "foreign_"


class ProfileContext(BaseModel):
    """
    Resolved profile for one operation.

    Real keys:    {prefix}{record}          e.g. fintrack_transactions
    Foreign keys: {prefix}foreign_{record}  e.g. fintrack_foreign_transactions
    Shared keys:  {prefix}{name}            e.g. fintrack_pin
    """

    model_config = ConfigDict(frozen=True)

    namespace: ProfileNamespace = ProfileNamespace.REAL
    key_prefix: str = DEFAULT_KEY_PREFIX

    @property
    def is_foreign(self) -> bool:
        return self.namespace == ProfileNamespace.FOREIGN

    @property
    def label(self) -> str:
        return self.namespace.value

    def key(self, record: RecordKey) -> str:
        """Physical key of a namespaced record."""
        if self.is_foreign:
            return f"{self.key_prefix}{FOREIGN_INFIX}{record.value}"
        return f"{self.key_prefix}{record.value}"

    def shared_key(self, name: SharedKey) -> str:
        """Physical key of a record both profiles share."""
        return f"{self.key_prefix}{name.value}"

    def all_keys(self) -> list[str]:
        return [self.key(record) for record in RecordKey]

    @classmethod
    def real(cls, key_prefix: str = DEFAULT_KEY_PREFIX) -> "ProfileContext":
        return cls(namespace=ProfileNamespace.REAL, key_prefix=key_prefix)

    @classmethod
    def foreign(cls, key_prefix: str = DEFAULT_KEY_PREFIX) -> "ProfileContext":
        return cls(namespace=ProfileNamespace.FOREIGN, key_prefix=key_prefix)
