"""
User and PIN records.

The user record is per profile. The PIN is shared: one device, one lock,
whichever profile is showing.
"""

import re
from typing import Optional

import structlog
from pydantic import ValidationError

from fintrack.models.ledger import User
from fintrack.models.profile import ProfileContext, RecordKey, SharedKey
from fintrack.services.storage import KeyValueStore
from fintrack.stores.base import RecordStore, decode_record, encode_record

logger = structlog.get_logger("fintrack.stores.users")

PIN_PATTERN = re.compile(r"[0-9]{4}")


class InvalidPinError(ValueError):
    """Raised when a PIN is not exactly four digits."""
    pass


class UserStore(RecordStore):
    record = RecordKey.USER

    async def get(self, profile: ProfileContext) -> Optional[User]:
        data = await self._read(profile)
        if data is None:
            return None
        try:
            return User.model_validate(data)
        except ValidationError as e:
            logger.warning("user_unreadable", profile=profile.label, errors=e.error_count())
            return None

    async def save(self, profile: ProfileContext, user: User) -> None:
        await self._write(profile, user.to_record())

    async def clear(self, profile: ProfileContext) -> None:
        await self._remove(profile)


class PinStore:
    """The 4-digit PIN under the shared {prefix}pin key."""

    def __init__(self, backend: KeyValueStore):
        self._backend = backend

    async def set_pin(self, profile: ProfileContext, pin: str) -> None:
        if not isinstance(pin, str) or not PIN_PATTERN.fullmatch(pin):
            raise InvalidPinError("PIN must be exactly 4 digits")
        await self._backend.set(profile.shared_key(SharedKey.PIN), encode_record(pin))

    async def has_pin(self, profile: ProfileContext) -> bool:
        return await self._stored_pin(profile) is not None

    async def verify_pin(self, profile: ProfileContext, pin: str) -> bool:
        stored = await self._stored_pin(profile)
        return stored is not None and stored == pin

    async def clear(self, profile: ProfileContext) -> None:
        await self._backend.remove(profile.shared_key(SharedKey.PIN))

    async def _stored_pin(self, profile: ProfileContext) -> Optional[str]:
        key = profile.shared_key(SharedKey.PIN)
        raw = await self._backend.get(key)
        if raw is None:
            return None
        value = decode_record(raw, key)
        return value if isinstance(value, str) else None
