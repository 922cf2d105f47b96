"""
Settings Store: the single configuration record of a profile.

DESIGN DECISION: Drift is repaired one field at a time. A field that no
longer validates falls back to its default while the rest of the record
is kept, so the next save doesn't wipe the user's accounts or currency.
"""

from typing import Any

import structlog
from pydantic import ValidationError

from fintrack.models.ledger import SETTINGS_SCHEMA_VERSION, UserSettings
from fintrack.models.profile import ProfileContext, RecordKey
from fintrack.stores.base import RecordStore
from fintrack.stores.migrations import migrate_settings

logger = structlog.get_logger("fintrack.stores.settings")


def _invalid_keys(error: ValidationError) -> set[str]:
    """Top-level record keys named by a validation error, by alias and by field name."""
    keys = set()
    for detail in error.errors():
        if not detail["loc"]:
            continue
        key = str(detail["loc"][0])
        keys.add(key)
        field = UserSettings.model_fields.get(key)
        if field is not None and field.alias:
            keys.add(field.alias)
    return keys


class SettingsStore(RecordStore):
    """
    Settings are created on first read: a profile that never saved
    settings reads the defaults.
    """

    record = RecordKey.SETTINGS

    async def get(self, profile: ProfileContext) -> UserSettings:
        data = await self._read(profile)
        if data is None:
            return UserSettings()
        if not isinstance(data, dict):
            logger.warning(
                "settings_not_an_object",
                profile=profile.label,
                found=type(data).__name__,
            )
            return UserSettings()

        return self._repair(profile, migrate_settings(data))

    def _repair(self, profile: ProfileContext, data: dict[str, Any]) -> UserSettings:
        try:
            return UserSettings.model_validate(data)
        except ValidationError as e:
            invalid = _invalid_keys(e)
            logger.warning(
                "settings_fields_reset",
                profile=profile.label,
                fields=sorted(invalid),
            )

        kept = {key: value for key, value in data.items() if key not in invalid}
        try:
            return UserSettings.model_validate(kept)
        except ValidationError as e:
            logger.warning(
                "settings_unreadable",
                profile=profile.label,
                errors=e.error_count(),
            )
            return UserSettings()

    async def save(self, profile: ProfileContext, settings: UserSettings) -> UserSettings:
        """Replace the record, stamping the current schema version."""
        stamped = settings.model_copy(update={"schema_version": SETTINGS_SCHEMA_VERSION})
        await self._write(profile, stamped.to_record())
        return stamped

    async def clear(self, profile: ProfileContext) -> None:
        await self._remove(profile)
