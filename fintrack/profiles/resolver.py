"""
Profile Resolver

DESIGN DECISION: The only state this component owns is the shared mode
flag. Switching into the foreign profile seeds demo data the first time,
and switching back never deletes it, so a re-enabled foreign profile
shows whatever it showed before.
"""

from datetime import date
from typing import Callable, Optional
from uuid import UUID

import structlog

from fintrack.audit import AuditLogger
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.profile import (
    DEFAULT_KEY_PREFIX,
    ProfileContext,
    ProfileNamespace,
    RecordKey,
    SharedKey,
)
from fintrack.profiles.seed import build_demo_dataset
from fintrack.services.storage import KeyValueStore
from fintrack.stores import GoalStore, SettingsStore, TransactionStore, UserStore
from fintrack.stores.base import encode_record

logger = structlog.get_logger("fintrack.profiles")

# Records whose presence means the foreign profile already has data
SEEDED_RECORDS = (
    RecordKey.USER,
    RecordKey.SETTINGS,
    RecordKey.GOALS,
    RecordKey.TRANSACTIONS,
)


class ProfileResolver:
    """Reads and writes the app_mode flag; seeds the foreign profile."""

    def __init__(
        self,
        backend: KeyValueStore,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._backend = backend
        self._key_prefix = key_prefix
        self._audit = audit_logger or AuditLogger()
        self._today = today

        self._users = UserStore(backend)
        self._settings = SettingsStore(backend)
        self._goals = GoalStore(backend)
        self._transactions = TransactionStore(backend)

    def context(self, namespace: ProfileNamespace) -> ProfileContext:
        return ProfileContext(namespace=namespace, key_prefix=self._key_prefix)

    @property
    def _mode_key(self) -> str:
        return self.context(ProfileNamespace.REAL).shared_key(SharedKey.APP_MODE)

    async def resolve(self) -> ProfileContext:
        """Active profile; an absent or unrecognised flag means REAL."""
        raw = await self._backend.get(self._mode_key)
        if raw is None:
            return self.context(ProfileNamespace.REAL)

        value = raw.decode("utf-8", errors="replace").strip().strip('"')
        if value == ProfileNamespace.FOREIGN.value:
            return self.context(ProfileNamespace.FOREIGN)
        if value != ProfileNamespace.REAL.value:
            logger.warning("unknown_app_mode", value=value)
        return self.context(ProfileNamespace.REAL)

    async def set_foreign(
        self,
        enabled: bool,
        correlation_id: Optional[UUID] = None,
    ) -> ProfileContext:
        """Switch profiles and return the context now in effect."""
        if enabled:
            profile = self.context(ProfileNamespace.FOREIGN)
            if not await self.foreign_data_exists():
                await self._seed(profile, correlation_id)
        else:
            profile = self.context(ProfileNamespace.REAL)

        await self._backend.set(self._mode_key, encode_record(profile.namespace.value))
        self._audit.log(
            AuditEventBuilder.profile_switched(profile.label, correlation_id)
        )
        return profile

    async def foreign_data_exists(self) -> bool:
        profile = self.context(ProfileNamespace.FOREIGN)
        for record in SEEDED_RECORDS:
            if await self._backend.contains(profile.key(record)):
                return True
        return False

    async def _seed(self, profile: ProfileContext, correlation_id: Optional[UUID]) -> None:
        dataset = build_demo_dataset(self._today())

        await self._users.save(profile, dataset.user)
        await self._settings.save(profile, dataset.settings)
        for goal in dataset.goals:
            await self._goals.add(profile, goal)
        # add() prepends, so insert oldest first to keep the dataset's order
        for transaction in reversed(dataset.transactions):
            await self._transactions.add(profile, transaction)

        self._audit.log(
            AuditEventBuilder.foreign_profile_seeded(
                goal_count=len(dataset.goals),
                transaction_count=len(dataset.transactions),
                correlation_id=correlation_id,
            )
        )
