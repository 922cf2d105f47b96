"""Tests for the flows the UI drives."""

import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from fintrack.agents import FinancialAdvisorAgent
from fintrack.models.audit import AuditEventType
from fintrack.models.ledger import (
    GOAL_CONTRIBUTION_CATEGORY,
    DashboardScope,
    TransactionDraft,
    TransactionType,
    User,
)
from fintrack.orchestrator import AI_DISABLED_MESSAGE, InsightsFlow, ProfileFlow, TransactionFlow
from fintrack.profiles import ProfileResolver
from fintrack.services.accounts import AccountManager
from fintrack.stores import GoalStore, InvalidPinError, SettingsStore, TransactionStore

TODAY = date(2024, 5, 20)


class EchoModel:
    def __init__(self):
        self.calls = 0

    async def generate_content_async(self, prompt):
        self.calls += 1
        return SimpleNamespace(text="Looks fine.")


@pytest.fixture
def flow(backend, audit):
    return TransactionFlow(
        TransactionStore(backend),
        SettingsStore(backend),
        GoalStore(backend),
        audit_logger=audit,
        today=lambda: TODAY,
    )


def _expense(amount="25", **fields):
    fields.setdefault("bank_account", "Cash")
    return TransactionDraft(
        amount=Decimal(amount),
        type=TransactionType.EXPENSE,
        date=datetime(2024, 5, 18),
        category="Food & Dining",
        **fields,
    )


class TestTransactionFlow:
    """Tests for writes through validation."""

    @pytest.mark.asyncio
    async def test_valid_draft_is_written(self, backend, real, flow, audit):
        transaction, result = await flow.add_transaction(real, _expense(note="Pizza"))
        assert result.is_valid
        assert transaction.tag == "Need"
        assert (await TransactionStore(backend).list(real))[0].id == transaction.id
        assert audit.recent_events()[0].event_type == AuditEventType.TRANSACTION_ADDED

    @pytest.mark.asyncio
    async def test_invalid_draft_writes_nothing(self, backend, real, flow, audit):
        transaction, result = await flow.add_transaction(real, _expense(amount="0"))
        assert transaction is None
        assert result.has_errors
        assert backend.snapshot() == {}
        assert audit.recent_events()[0].event_type == AuditEventType.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_warnings_do_not_block(self, real, flow):
        transaction, result = await flow.add_transaction(real, _expense(bank_account="Nowhere"))
        assert transaction is not None
        assert result.warnings

    @pytest.mark.asyncio
    async def test_parked_needs_goal_and_drops_foreign_fields(self, real, flow):
        goal, _ = await flow.add_goal(real, "Bike", Decimal("800"))
        draft = TransactionDraft(
            amount=Decimal("100"),
            type=TransactionType.PARKED,
            date=datetime(2024, 5, 18),
            bank_account="Vault",
            to_account="Main Bank",
            goal_id=goal.id,
            tag="Want",
        )
        transaction, result = await flow.add_transaction(real, draft)
        assert result.is_valid
        assert transaction.category == GOAL_CONTRIBUTION_CATEGORY
        assert transaction.to_account is None
        assert transaction.tag is None

        progress = await flow.goal_overview(real)
        assert progress[0].saved == Decimal("100")

    @pytest.mark.asyncio
    async def test_update_keeps_id(self, backend, real, flow):
        original, _ = await flow.add_transaction(real, _expense())
        updated, _ = await flow.update_transaction(real, original.id, _expense(amount="40"))
        assert updated.id == original.id

        listed = await TransactionStore(backend).list(real)
        assert [t.amount for t in listed] == [Decimal("40")]

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, backend, real, flow, audit):
        await flow.add_transaction(real, _expense())
        before = backend.snapshot()

        updated, result = await flow.update_transaction(real, "missing", _expense(amount="40"))
        assert updated is None
        assert result.is_valid
        assert backend.snapshot() == before
        assert audit.recent_events()[0].event_type == AuditEventType.TRANSACTION_UPDATE_SKIPPED

    @pytest.mark.asyncio
    async def test_invalid_goal_is_not_written(self, real, flow):
        goal, result = await flow.add_goal(real, "  ", Decimal("10"))
        assert goal is None
        assert await flow.goals(real) == []

    @pytest.mark.asyncio
    async def test_dashboard_in_primary_scope(self, backend, real, flow):
        await flow.add_transaction(real, _expense(amount="10", bank_account="Cash"))
        await flow.add_transaction(real, _expense(amount="20", bank_account="Main Bank"))
        manager = AccountManager(TransactionStore(backend), SettingsStore(backend))
        await manager.set_dashboard_scope(real, DashboardScope.PRIMARY)

        view = await flow.dashboard(real)
        assert view.totals.total_expense == Decimal("20")
        assert [t.amount for t in view.transactions] == [Decimal("20")]

    @pytest.mark.asyncio
    async def test_profiles_do_not_mix(self, real, foreign, flow):
        await flow.add_transaction(foreign, _expense())
        view = await flow.dashboard(real)
        assert view.transactions == []


class TestInsightsFlow:
    """Tests for the advice gate."""

    @pytest.mark.asyncio
    async def test_ai_disabled_skips_model(self, backend, real, flow):
        model = EchoModel()
        insights = InsightsFlow(
            TransactionStore(backend),
            SettingsStore(backend),
            FinancialAdvisorAgent(model=model),
        )
        await flow.add_transaction(real, _expense())
        await AccountManager(TransactionStore(backend), SettingsStore(backend)).set_ai_enabled(real, False)

        advice = await insights.advice(real)
        assert advice.text == AI_DISABLED_MESSAGE
        assert model.calls == 0

    @pytest.mark.asyncio
    async def test_ai_enabled_calls_model(self, backend, real, flow):
        model = EchoModel()
        insights = InsightsFlow(
            TransactionStore(backend),
            SettingsStore(backend),
            FinancialAdvisorAgent(model=model),
        )
        await flow.add_transaction(real, _expense())

        advice = await insights.advice(real)
        assert advice.text == "Looks fine."
        assert model.calls == 1


class TestProfileFlow:
    """Tests for sign-in, lock and switching."""

    @pytest.fixture
    def profiles(self, backend, audit):
        resolver = ProfileResolver(backend, audit_logger=audit, today=lambda: TODAY)
        return ProfileFlow(backend, resolver, audit, clock=lambda: datetime(2024, 5, 20))

    @pytest.mark.asyncio
    async def test_login_pin_logout(self, profiles):
        profile = await profiles.current_profile()
        await profiles.login(profile, User(id="1", name="Ana", email="ana@example.com"))
        await profiles.set_pin(profile, "2468")
        assert await profiles.verify_pin(profile, "2468")

        with pytest.raises(InvalidPinError):
            await profiles.set_pin(profile, "24")

        await profiles.logout(profile)
        assert await profiles.current_user(profile) is None
        assert not await profiles.has_pin(profile)

    @pytest.mark.asyncio
    async def test_switching_shows_demo_user(self, profiles):
        foreign = await profiles.set_foreign(True)
        assert (await profiles.current_user(foreign)).name == "Demo User"
        assert (await profiles.current_profile()).is_foreign

    @pytest.mark.asyncio
    async def test_export_and_wipe(self, profiles, backend):
        foreign = await profiles.set_foreign(True)
        assert '"mode": "foreign"' in await profiles.export(foreign)

        await profiles.wipe(foreign)
        for key in foreign.all_keys():
            assert not await backend.contains(key)
