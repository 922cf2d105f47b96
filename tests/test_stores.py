"""Tests for the per-profile stores."""

import json

import pytest
from decimal import Decimal

from fintrack.models.ledger import SETTINGS_SCHEMA_VERSION, Goal, TransactionType, User, UserSettings
from fintrack.models.profile import RecordKey, SharedKey
from fintrack.stores import (
    CorruptRecordError,
    GoalStore,
    InvalidPinError,
    PinStore,
    SettingsStore,
    TransactionStore,
    UserStore,
)


class TestTransactionStore:
    """Tests for the transaction log."""

    @pytest.mark.asyncio
    async def test_add_prepends(self, backend, real, make_tx):
        """Test most-recently-added-first ordering, regardless of date."""
        store = TransactionStore(backend)
        first = make_tx("10")
        second = make_tx("20")
        await store.add(real, first)
        await store.add(real, second)

        listed = await store.list(real)
        assert [t.id for t in listed] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_replaces_by_id(self, backend, real, make_tx):
        """Test whole-record replacement."""
        store = TransactionStore(backend)
        tx = make_tx("10")
        await store.add(real, tx)

        edited = tx.model_copy(update={"amount": Decimal("99")})
        assert await store.update(real, edited) is True
        assert (await store.list(real))[0].amount == Decimal("99")

    @pytest.mark.asyncio
    async def test_update_unknown_id_is_noop(self, backend, real, make_tx):
        """Test that updating a missing id writes nothing."""
        store = TransactionStore(backend)
        await store.add(real, make_tx("10"))
        before = backend.snapshot()

        assert await store.update(real, make_tx("50")) is False
        assert backend.snapshot() == before

    @pytest.mark.asyncio
    async def test_clear(self, backend, real, make_tx):
        """Test that clear empties the log."""
        store = TransactionStore(backend)
        await store.add(real, make_tx())
        await store.clear(real)
        assert await store.list(real) == []

    @pytest.mark.asyncio
    async def test_corrupt_record_reads_empty(self, backend, real):
        """Test that undecodable bytes read as an empty log."""
        await backend.set(real.key(RecordKey.TRANSACTIONS), b"{not json")
        assert await TransactionStore(backend).list(real) == []

    @pytest.mark.asyncio
    async def test_writes_refuse_an_undecodable_log(self, backend, real, make_tx):
        """Test that a truncated log is never replaced by a fresh one."""
        key = real.key(RecordKey.TRANSACTIONS)
        truncated = b'[{"id": "a", "amount": 5, "type": "income"'
        await backend.set(key, truncated)
        store = TransactionStore(backend)

        with pytest.raises(CorruptRecordError):
            await store.add(real, make_tx())
        with pytest.raises(CorruptRecordError):
            await store.update(real, make_tx())
        with pytest.raises(CorruptRecordError):
            await store.rewrite_account(real, "Cash", "Wallet")
        assert await backend.get(key) == truncated

    @pytest.mark.asyncio
    async def test_writes_refuse_a_non_list_record(self, backend, real, make_tx):
        await backend.set(real.key(RecordKey.TRANSACTIONS), b'{"id": "a"}')
        with pytest.raises(CorruptRecordError):
            await TransactionStore(backend).add(real, make_tx())

    @pytest.mark.asyncio
    async def test_non_object_entries_survive_writes(self, backend, real, make_tx):
        """Test that entries the store can't read are still written back."""
        key = real.key(RecordKey.TRANSACTIONS)
        await backend.set(key, json.dumps(["legacy", 7]).encode())

        tx = make_tx()
        await TransactionStore(backend).add(real, tx)
        stored = json.loads(await backend.get(key))
        assert stored[0]["id"] == tx.id
        assert stored[1:] == ["legacy", 7]

    @pytest.mark.asyncio
    async def test_invalid_entries_are_skipped(self, backend, real):
        """Test that one bad entry doesn't hide the others."""
        payload = [
            {"id": "ok", "amount": "5", "type": "income", "date": "2024-01-01"},
            {"id": "bad", "amount": "-5", "type": "income", "date": "2024-01-01"},
        ]
        await backend.set(real.key(RecordKey.TRANSACTIONS), json.dumps(payload).encode())
        listed = await TransactionStore(backend).list(real)
        assert [t.id for t in listed] == ["ok"]

    @pytest.mark.asyncio
    async def test_profiles_are_isolated(self, backend, real, foreign, make_tx):
        """Test that writes to one profile are invisible to the other."""
        store = TransactionStore(backend)
        await store.add(real, make_tx("10"))
        assert await store.list(foreign) == []

        await store.add(foreign, make_tx("20", type=TransactionType.INCOME))
        assert [t.amount for t in await store.list(real)] == [Decimal("10")]

    @pytest.mark.asyncio
    async def test_rewrite_account_counts_changes(self, backend, real, make_tx):
        """Test account rewriting on both sides of a transfer."""
        store = TransactionStore(backend)
        await store.add(real, make_tx(bank_account="Cash"))
        await store.add(real, make_tx(type=TransactionType.TRANSFER, bank_account="Main Bank", to_account="Cash"))
        await store.add(real, make_tx(bank_account="Main Bank"))

        assert await store.rewrite_account(real, "Cash", "Wallet") == 2
        listed = await store.list(real)
        assert not any(t.references_account("Cash") for t in listed)
        assert sum(t.references_account("Wallet") for t in listed) == 2


class TestSettingsStore:
    """Tests for the settings record."""

    @pytest.mark.asyncio
    async def test_unset_returns_defaults(self, backend, real):
        """Test creation on first read."""
        settings = await SettingsStore(backend).get(real)
        assert settings == UserSettings()

    @pytest.mark.asyncio
    async def test_save_stamps_version(self, backend, real):
        """Test that saved settings carry the current schema version."""
        store = SettingsStore(backend)
        await store.save(real, UserSettings(schema_version=0, currency_code="EUR"))

        raw = json.loads(await backend.get(real.key(RecordKey.SETTINGS)))
        assert raw["schemaVersion"] == SETTINGS_SCHEMA_VERSION
        assert (await store.get(real)).currency_code == "EUR"

    @pytest.mark.asyncio
    async def test_legacy_record_is_migrated_on_read_only(self, backend, real):
        """Test that reading a v0 record does not rewrite it."""
        legacy = json.dumps({"categories": ["Food & Dining", "Salary"], "bankAccounts": ["Cash"]}).encode()
        await backend.set(real.key(RecordKey.SETTINGS), legacy)

        settings = await SettingsStore(backend).get(real)
        assert settings.expense_categories == ["Food & Dining"]
        assert settings.income_categories == ["Salary"]
        assert settings.primary_account == "Cash"
        assert await backend.get(real.key(RecordKey.SETTINGS)) == legacy

    @pytest.mark.asyncio
    async def test_corrupt_settings_read_as_defaults(self, backend, real):
        """Test that schema drift never raises."""
        await backend.set(real.key(RecordKey.SETTINGS), b"[1, 2, 3]")
        assert await SettingsStore(backend).get(real) == UserSettings()

    @pytest.mark.asyncio
    async def test_invalid_field_is_reset_alone(self, backend, real):
        """Test that one drifted field doesn't cost the rest of the record."""
        record = {
            "schemaVersion": SETTINGS_SCHEMA_VERSION,
            "bankAccounts": ["Cash", "Main Bank", "HDFC"],
            "primaryAccount": "HDFC",
            "currencyCode": "INR",
            "currencySymbol": "₹",
            "tagLimits": {"Need": None},
        }
        await backend.set(real.key(RecordKey.SETTINGS), json.dumps(record).encode())

        settings = await SettingsStore(backend).get(real)
        assert settings.bank_accounts == ["Cash", "Main Bank", "HDFC"]
        assert settings.primary_account == "HDFC"
        assert settings.currency_code == "INR"
        assert settings.tag_limits == UserSettings().tag_limits


class TestGoalStore:
    """Tests for goals."""

    @pytest.mark.asyncio
    async def test_add_appends_and_remove_filters(self, backend, real):
        """Test append order and removal by id."""
        store = GoalStore(backend)
        bike = Goal(name="Bike", target_amount=Decimal("800"))
        trip = Goal(name="Trip", target_amount=Decimal("2000"))
        await store.add(real, bike)
        await store.add(real, trip)
        assert [g.name for g in await store.list(real)] == ["Bike", "Trip"]

        assert await store.remove(real, bike.id) is True
        assert [g.name for g in await store.list(real)] == ["Trip"]

    @pytest.mark.asyncio
    async def test_remove_unknown_id_is_silent(self, backend, real):
        """Test that removing a missing goal is a no-op."""
        store = GoalStore(backend)
        await store.add(real, Goal(name="Bike", target_amount=Decimal("800")))
        assert await store.remove(real, "missing") is False
        assert len(await store.list(real)) == 1

    @pytest.mark.asyncio
    async def test_undecodable_goals_are_not_overwritten(self, backend, real):
        key = real.key(RecordKey.GOALS)
        await backend.set(key, b'[{"id": "g1"')
        store = GoalStore(backend)

        with pytest.raises(CorruptRecordError):
            await store.add(real, Goal(name="Bike", target_amount=Decimal("800")))
        with pytest.raises(CorruptRecordError):
            await store.remove(real, "g1")
        assert await backend.get(key) == b'[{"id": "g1"'


class TestUserAndPin:
    """Tests for the user record and the shared PIN."""

    @pytest.mark.asyncio
    async def test_user_is_per_profile(self, backend, real, foreign):
        """Test that the user record is namespaced."""
        store = UserStore(backend)
        await store.save(real, User(id="1", name="Ana", email="ana@example.com"))
        assert (await store.get(real)).name == "Ana"
        assert await store.get(foreign) is None

    @pytest.mark.asyncio
    async def test_pin_is_shared(self, backend, real, foreign):
        """Test that one PIN locks both profiles."""
        pins = PinStore(backend)
        await pins.set_pin(real, "1234")
        assert await pins.verify_pin(foreign, "1234")
        assert not await pins.verify_pin(real, "4321")
        assert await backend.get(real.shared_key(SharedKey.PIN)) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pin", ["123", "12345", "12a4", "", "１２３４"])
    async def test_pin_must_be_four_digits(self, backend, real, pin):
        """Test that anything but four ASCII digits is rejected."""
        with pytest.raises(InvalidPinError):
            await PinStore(backend).set_pin(real, pin)
        assert not await PinStore(backend).has_pin(real)

    @pytest.mark.asyncio
    async def test_no_pin_never_verifies(self, backend, real):
        """Test verification without a stored PIN."""
        assert await PinStore(backend).verify_pin(real, "0000") is False
