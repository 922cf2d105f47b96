"""Tests for profile export and wipe."""

import json

import pytest
from datetime import datetime
from decimal import Decimal

from fintrack.models.audit import AuditEventType
from fintrack.models.ledger import Goal, User
from fintrack.models.profile import SharedKey
from fintrack.services.export import export_filename, export_profile, wipe_profile
from fintrack.stores import GoalStore, PinStore, SettingsStore, TransactionStore, UserStore

NOW = datetime(2024, 5, 20, 8, 30)


async def _populate(backend, profile, make_tx):
    await UserStore(backend).save(profile, User(id="1", name="Ana", email="ana@example.com"))
    await GoalStore(backend).add(profile, Goal(name="Bike", target_amount=Decimal("800")))
    await TransactionStore(backend).add(profile, make_tx("12.5"))


class TestExport:
    """Tests for the export document."""

    @pytest.mark.asyncio
    async def test_document_shape(self, backend, real, make_tx, audit):
        await _populate(backend, real, make_tx)
        text = await export_profile(backend, real, audit_logger=audit, clock=lambda: NOW)
        document = json.loads(text)

        assert document["app"] == "FinTrack AI"
        assert document["mode"] == "real"
        assert document["exportedAt"] == NOW.isoformat()
        assert document["user"]["name"] == "Ana"
        assert document["goals"][0]["targetAmount"] == 800
        assert document["transactions"][0]["amount"] == 12.5
        assert document["settings"]["currencyCode"] == "USD"
        assert audit.recent_events()[0].event_type == AuditEventType.DATA_EXPORTED

    @pytest.mark.asyncio
    async def test_export_only_reads(self, backend, foreign):
        """Test that exporting an empty profile writes nothing."""
        document = json.loads(await export_profile(backend, foreign, clock=lambda: NOW))
        assert document["user"] is None
        assert document["transactions"] == []
        assert backend.snapshot() == {}

    def test_filename(self, real, foreign):
        assert export_filename(real, NOW) == "fintrack_real_2024-05-20.json"
        assert export_filename(foreign, NOW) == "fintrack_foreign_2024-05-20.json"


class TestWipe:
    """Tests for wiping one profile."""

    @pytest.mark.asyncio
    async def test_wipe_foreign_keeps_real_and_pin(self, backend, real, foreign, make_tx):
        await _populate(backend, real, make_tx)
        await _populate(backend, foreign, make_tx)
        await PinStore(backend).set_pin(real, "1234")

        removed = await wipe_profile(backend, foreign)
        assert set(removed) == {
            "fintrack_foreign_user", "fintrack_foreign_goals", "fintrack_foreign_transactions",
        }
        assert len(await TransactionStore(backend).list(real)) == 1
        assert await PinStore(backend).has_pin(real)

    @pytest.mark.asyncio
    async def test_wipe_real_resets_lock_and_mode(self, backend, real, foreign, make_tx, audit):
        """Test that wiping the real profile removes the PIN and the mode flag too."""
        await _populate(backend, real, make_tx)
        await _populate(backend, foreign, make_tx)
        await SettingsStore(backend).save(real, (await SettingsStore(backend).get(real)))
        await PinStore(backend).set_pin(real, "1234")
        await backend.set(real.shared_key(SharedKey.APP_MODE), b'"foreign"')

        removed = await wipe_profile(backend, real, audit_logger=audit)
        assert "fintrack_pin" in removed
        assert "fintrack_app_mode" in removed
        assert "fintrack_settings" in removed
        assert not await PinStore(backend).has_pin(real)
        assert len(await TransactionStore(backend).list(foreign)) == 1
        assert audit.recent_events()[0].event_type == AuditEventType.DATA_WIPED

    @pytest.mark.asyncio
    async def test_wipe_empty_profile(self, backend, real):
        assert await wipe_profile(backend, real) == []
