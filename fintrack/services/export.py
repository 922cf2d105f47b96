"""
Export and Wipe

Export writes one pretty-printed JSON document per profile for archiving.
There is no import: the document is for people, not for round trips.

Wipe removes every record of one profile. Wiping the real profile also
removes the shared PIN and the mode flag, which brings the app back to
its first-run state.
"""

import json
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fintrack.audit import AuditLogger
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.profile import ProfileContext, SharedKey
from fintrack.services.storage import KeyValueStore
from fintrack.stores import GoalStore, SettingsStore, TransactionStore, UserStore

EXPORT_APP_NAME = "FinTrack AI"


async def build_export_document(
    backend: KeyValueStore,
    profile: ProfileContext,
    now: Optional[datetime] = None,
) -> dict:
    """Everything one profile holds, in the persisted camelCase layout."""
    user = await UserStore(backend).get(profile)
    settings = await SettingsStore(backend).get(profile)
    goals = await GoalStore(backend).list(profile)
    transactions = await TransactionStore(backend).list(profile)

    return {
        "app": EXPORT_APP_NAME,
        "mode": profile.label,
        "exportedAt": (now or datetime.now()).isoformat(),
        "user": user.to_record() if user else None,
        "settings": settings.to_record(),
        "goals": [goal.to_record() for goal in goals],
        "transactions": [t.to_record() for t in transactions],
    }


async def export_profile(
    backend: KeyValueStore,
    profile: ProfileContext,
    audit_logger: Optional[AuditLogger] = None,
    clock: Callable[[], datetime] = datetime.now,
    correlation_id: Optional[UUID] = None,
) -> str:
    """The export document as indented JSON text."""
    document = await build_export_document(backend, profile, clock())

    (audit_logger or AuditLogger()).log(
        AuditEventBuilder.data_exported(
            profile.label, len(document["transactions"]), correlation_id
        )
    )
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_filename(profile: ProfileContext, now: datetime) -> str:
    return f"fintrack_{profile.label}_{now.date().isoformat()}.json"


async def wipe_profile(
    backend: KeyValueStore,
    profile: ProfileContext,
    audit_logger: Optional[AuditLogger] = None,
    correlation_id: Optional[UUID] = None,
) -> list[str]:
    """Remove the profile's records; returns the keys that existed and are now gone."""
    keys = profile.all_keys()
    if not profile.is_foreign:
        keys += [profile.shared_key(SharedKey.PIN), profile.shared_key(SharedKey.APP_MODE)]

    removed = []
    for key in keys:
        if await backend.contains(key):
            await backend.remove(key)
            removed.append(key)

    (audit_logger or AuditLogger()).log(
        AuditEventBuilder.data_wiped(profile.label, removed, correlation_id)
    )
    return removed
