"""AI Agents package."""

from fintrack.agents.advisor import (
    AdviceResponse,
    FinancialAdvisorAgent,
    summarize_transactions,
)

__all__ = [
    "AdviceResponse",
    "FinancialAdvisorAgent",
    "summarize_transactions",
]
