"""
Financial Advisor Agent

DESIGN DECISION: The model only ever sees a short, flattened summary of
the most recent transactions (date, type, amount, category, note). No
account names, no goals, no balances, and never more than the configured
limit (50).

CRITICAL BOUNDARIES:
- CAN: Summarise spending habits and suggest tips
- CANNOT: Change any data; the advice is display-only text
- MUST: Degrade to a fixed fallback message on any failure, never raise
"""

from decimal import Decimal
from typing import Any, Optional, Sequence
from uuid import UUID

import google.generativeai as genai
from pydantic import BaseModel, Field

from fintrack.audit import AuditLogger
from fintrack.config import GeminiSettings, get_settings
from fintrack.ledger.engine import most_recent
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.ledger import Transaction

SYSTEM_INSTRUCTION = "You are a helpful, concise financial expert."

NO_TRANSACTIONS_MESSAGE = (
    "Please add some transactions first so I can analyze your spending habits."
)
SERVICE_ERROR_MESSAGE = (
    "Sorry, I'm having trouble connecting to the financial brain right now. "
    "Please try again later."
)
EMPTY_RESPONSE_MESSAGE = "I couldn't generate insights at this moment."

DEFAULT_TRANSACTION_LIMIT = 50


class AdviceResponse(BaseModel):
    """Advice text plus whether it came from the model or a fallback."""

    text: str
    used_fallback: bool = False
    transaction_count: int = Field(
        default=0,
        description="How many transactions were sent to the model"
    )


def _format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


def summarize_transactions(
    transactions: Sequence[Transaction],
    limit: int = DEFAULT_TRANSACTION_LIMIT,
    currency_symbol: str = "$",
) -> list[str]:
    """
    One line per transaction, most recently added first, at most `limit` lines.

    e.g. "- 2024-05-02: EXPENSE of $12.50 for Food & Dining (Lunch)"
    """
    limit = min(max(limit, 0), DEFAULT_TRANSACTION_LIMIT)
    return [
        f"- {t.day.isoformat()}: {t.type.value.upper()} of "
        f"{currency_symbol}{_format_amount(t.amount)} for {t.category} ({t.note})"
        for t in most_recent(transactions, limit)
    ]


def build_prompt(lines: list[str]) -> str:
    return f"""Analyze the following recent personal finance transactions.

Transactions:
{chr(10).join(lines)}

Respond with:
1. A one-sentence summary of the spending habits you see
2. Three short, actionable tips to save money or budget better

Keep it friendly and brief. Use Markdown bullet points for the tips.
Base everything ONLY on the transactions above; do not invent figures."""


class FinancialAdvisorAgent:
    """
    Turns the transaction log into a short block of advice.

    The Gemini model is configured lazily, on the first request that
    actually needs it, so the app starts without an API key.
    """

    SERVICE_NAME = "gemini"

    def __init__(
        self,
        model: Optional[Any] = None,
        settings: Optional[GeminiSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._model = model
        self._settings = settings
        self._audit = audit_logger or AuditLogger()

    @property
    def transaction_limit(self) -> int:
        if self._settings is None:
            return DEFAULT_TRANSACTION_LIMIT
        return self._settings.advice_transaction_limit

    def _configure_genai(self):
        """Configure Google Generative AI."""
        if self._settings is None:
            self._settings = get_settings().gemini
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def generate_advice(
        self,
        transactions: Sequence[Transaction],
        currency_symbol: str = "$",
        profile: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AdviceResponse:
        """
        Ask the model for advice on the most recent transactions.

        An empty log returns a prompt to add data without calling the model.
        """
        if not transactions:
            return AdviceResponse(text=NO_TRANSACTIONS_MESSAGE, used_fallback=True)

        lines = summarize_transactions(transactions, self.transaction_limit, currency_symbol)

        try:
            if self._model is None:
                self._configure_genai()
            response = await self._model.generate_content_async(build_prompt(lines))
            text = (getattr(response, "text", None) or "").strip()
        except Exception as e:
            self._audit.log_external_service_error(
                service=self.SERVICE_NAME,
                error_message=f"{type(e).__name__}: {e}",
                correlation_id=correlation_id,
            )
            advice = AdviceResponse(
                text=SERVICE_ERROR_MESSAGE,
                used_fallback=True,
                transaction_count=len(lines),
            )
        else:
            if text:
                advice = AdviceResponse(text=text, transaction_count=len(lines))
            else:
                advice = AdviceResponse(
                    text=EMPTY_RESPONSE_MESSAGE,
                    used_fallback=True,
                    transaction_count=len(lines),
                )

        self._audit.log(
            AuditEventBuilder.advice_generated(
                profile or "real",
                advice.transaction_count,
                advice.used_fallback,
                correlation_id,
            )
        )
        return advice
