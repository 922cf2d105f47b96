"""Tests for the financial advisor agent, with a fake Gemini model."""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from fintrack.agents import FinancialAdvisorAgent, summarize_transactions
from fintrack.agents.advisor import (
    EMPTY_RESPONSE_MESSAGE,
    NO_TRANSACTIONS_MESSAGE,
    SERVICE_ERROR_MESSAGE,
)
from fintrack.models.audit import AuditEventType
from fintrack.models.ledger import TransactionType


class FakeModel:
    """Records prompts and answers with a fixed text (or raises)."""

    def __init__(self, text="Spend less on takeaway.", error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def long_log(make_tx):
    start = date(2024, 1, 1)
    return [make_tx(str(i + 1), day=start + timedelta(days=i)) for i in range(60)]


class TestSummary:
    """Tests for what the model gets to see."""

    def test_line_format(self, make_tx):
        tx = make_tx("12.5", day=date(2024, 5, 2), note="Lunch")
        assert summarize_transactions([tx]) == [
            "- 2024-05-02: EXPENSE of $12.50 for Food & Dining (Lunch)"
        ]

    def test_bounded_to_fifty_most_recent(self, long_log):
        """Test that at most 50 entries are sent, taken from the front of the log."""
        lines = summarize_transactions(long_log, limit=500)
        assert len(lines) == 50
        assert lines[0].startswith("- 2024-01-01")

    def test_no_account_names_leak(self, make_tx):
        tx = make_tx("5", bank_account="Secret Swiss Account")
        assert "Secret" not in summarize_transactions([tx])[0]


class TestGenerateAdvice:
    """Tests for the advice flow and its fallbacks."""

    @pytest.mark.asyncio
    async def test_returns_model_text(self, make_tx, audit):
        model = FakeModel()
        agent = FinancialAdvisorAgent(model=model, audit_logger=audit)

        advice = await agent.generate_advice([make_tx("20")], currency_symbol="€")
        assert advice.text == "Spend less on takeaway."
        assert not advice.used_fallback
        assert advice.transaction_count == 1
        assert "EXPENSE of €20.00" in model.prompts[0]
        assert audit.recent_events()[0].event_type == AuditEventType.ADVICE_GENERATED

    @pytest.mark.asyncio
    async def test_prompt_holds_at_most_fifty(self, long_log):
        model = FakeModel()
        advice = await FinancialAdvisorAgent(model=model).generate_advice(long_log)
        assert advice.transaction_count == 50
        assert model.prompts[0].count("\n- ") == 50

    @pytest.mark.asyncio
    async def test_empty_log_never_calls_model(self):
        model = FakeModel()
        advice = await FinancialAdvisorAgent(model=model).generate_advice([])
        assert advice.text == NO_TRANSACTIONS_MESSAGE
        assert advice.used_fallback
        assert model.prompts == []

    @pytest.mark.asyncio
    async def test_service_error_falls_back(self, make_tx, audit):
        """Test that a failing model never raises."""
        model = FakeModel(error=RuntimeError("quota exceeded"))
        agent = FinancialAdvisorAgent(model=model, audit_logger=audit)

        advice = await agent.generate_advice([make_tx()])
        assert advice.text == SERVICE_ERROR_MESSAGE
        assert advice.used_fallback
        types = [e.event_type for e in audit.recent_events()]
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in types

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back(self, make_tx):
        model = FakeModel(text="   ")
        advice = await FinancialAdvisorAgent(model=model).generate_advice([make_tx()])
        assert advice.text == EMPTY_RESPONSE_MESSAGE
        assert advice.used_fallback

    @pytest.mark.asyncio
    async def test_income_lines(self, make_tx):
        model = FakeModel()
        tx = make_tx("3000", type=TransactionType.INCOME, category="Salary")
        await FinancialAdvisorAgent(model=model).generate_advice([tx])
        assert "INCOME of $3000.00 for Salary" in model.prompts[0]
