"""
JSON record plumbing shared by every store.

Records are JSON documents stored under a namespaced key. Lists are
manipulated as raw entries so that entries a store does not touch are
written back exactly as they were read.

DESIGN DECISION: Reads are lenient and writes are strict. A record that
can't be decoded reads as empty so the app still opens, but a write that
would build on that empty read raises CorruptRecordError instead of
replacing the stored data.
"""

import json
from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from fintrack.models.profile import ProfileContext, RecordKey
from fintrack.services.storage import KeyValueStore, StorageError

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = structlog.get_logger("fintrack.stores")


class CorruptRecordError(StorageError):
    """A stored record can't be decoded, so it must not be overwritten."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Record {key} is unreadable ({reason}); refusing to overwrite it")


def encode_record(payload: Any) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def decode_record(raw: bytes, key: str, strict: bool = False) -> Optional[Any]:
    """
    Parse stored bytes.

    Unreadable data reads as absent, or raises CorruptRecordError when
    strict is set.
    """
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        if strict:
            raise CorruptRecordError(key, str(e)) from e
        logger.warning("record_unreadable", key=key, error=str(e))
        return None


class RecordStore:
    """Base class: one logical record per profile."""

    record: RecordKey

    def __init__(self, backend: KeyValueStore):
        self._backend = backend

    async def _read(self, profile: ProfileContext, strict: bool = False) -> Optional[Any]:
        key = profile.key(self.record)
        raw = await self._backend.get(key)
        if raw is None:
            return None
        return decode_record(raw, key, strict=strict)

    async def _write(self, profile: ProfileContext, payload: Any) -> None:
        await self._backend.set(profile.key(self.record), encode_record(payload))

    async def _remove(self, profile: ProfileContext) -> None:
        await self._backend.remove(profile.key(self.record))

    async def exists(self, profile: ProfileContext) -> bool:
        return await self._backend.contains(profile.key(self.record))


class ListRecordStore(RecordStore):
    """A record holding a JSON list of entries, each with an 'id'."""

    async def _read_raw_list(self, profile: ProfileContext) -> list[dict]:
        """The object entries of the list, for reading only."""
        data = await self._read(profile)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(
                "record_not_a_list",
                key=profile.key(self.record),
                found=type(data).__name__,
            )
            return []
        return [item for item in data if isinstance(item, dict)]

    async def _read_list_for_write(self, profile: ProfileContext) -> list:
        """
        Every entry of the list, objects or not, ready to be edited and
        written back. An absent record is an empty list.

        Raises:
            CorruptRecordError: the record isn't JSON, or isn't a list
        """
        key = profile.key(self.record)
        data = await self._read(profile, strict=True)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptRecordError(key, f"expected a list, found {type(data).__name__}")
        return data

    def _parse_entries(
        self,
        profile: ProfileContext,
        raw_items: list[dict],
        model: type[ModelT],
    ) -> list[ModelT]:
        """Validate entries, skipping (and logging) the ones that don't fit."""
        parsed = []
        for item in raw_items:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "record_entry_skipped",
                    key=profile.key(self.record),
                    entry_id=item.get("id"),
                    errors=e.error_count(),
                )
        return parsed
