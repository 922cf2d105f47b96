"""
Main Orchestrator for FinTrack

This module ties together all the components and defines the
end-to-end flows for:
1. Transactions and goals (draft → validate → store → recompute views)
2. Insights (recent log → advisor → text)
3. Profile lifecycle (PIN, real/foreign switch, export, wipe, logout)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No draft reaches a store without passing validation
- Every call names the ProfileContext it acts on
- Views are recomputed from the log on every read
- Every mutation is audited

The UI talks to these flows only; it never touches a store directly.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from fintrack.agents import AdviceResponse, FinancialAdvisorAgent
from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.config import get_settings
from fintrack.ledger import (
    AccountBalance,
    CategoryTotal,
    DashboardTotals,
    GoalProgress,
    TagUsage,
    TimeWindow,
    account_balances,
    all_goal_progress,
    category_breakdown,
    dashboard_totals,
    filter_by_scope,
    filter_by_type,
    sort_by_date,
    tag_breakdown,
)
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.ledger import (
    Goal,
    Transaction,
    TransactionDraft,
    TransactionType,
    User,
    UserSettings,
    ValidationResult,
)
from fintrack.models.profile import ProfileContext
from fintrack.profiles import ProfileResolver
from fintrack.services.accounts import AccountManager
from fintrack.services.exchange import ExchangeCardCache, ExchangeRateFetcher, RateFetcher
from fintrack.services.export import export_profile, wipe_profile
from fintrack.services.storage import (
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
)
from fintrack.stores import GoalStore, PinStore, SettingsStore, TransactionStore, UserStore
from fintrack.validation import TransactionValidator

logger = structlog.get_logger("fintrack.orchestrator")

AI_DISABLED_MESSAGE = "AI insights are turned off. Enable them in Settings."


# =============================================================================
# VIEWS
# =============================================================================

class DashboardView(BaseModel):
    totals: DashboardTotals
    transactions: list[Transaction]
    currency_symbol: str
    privacy_mode: bool


class AnalyticsView(BaseModel):
    window: TimeWindow
    accounts: list[AccountBalance]
    categories: list[CategoryTotal]
    tags: list[TagUsage]
    currency_symbol: str
    privacy_mode: bool


# =============================================================================
# FLOWS
# =============================================================================

class TransactionFlow:
    """
    Transactions, goals and the views derived from them.

    Flow for a write:
    1. Load the profile's settings and goals
    2. Validate the draft (errors stop here, nothing is written)
    3. Build the Transaction, keeping only the fields of its type
    4. Write and audit
    """

    def __init__(
        self,
        transactions: TransactionStore,
        settings_store: SettingsStore,
        goals: GoalStore,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._transactions = transactions
        self._settings = settings_store
        self._goals = goals
        self._validator = validator or TransactionValidator()
        self._audit = audit_logger or AuditLogger()
        self._today = today

    async def _validate(
        self,
        profile: ProfileContext,
        draft: TransactionDraft,
        correlation_id: UUID,
    ) -> ValidationResult:
        settings = await self._settings.get(profile)
        goals = await self._goals.list(profile)
        result = self._validator.validate(draft, settings, goals, self._today())

        if result.has_errors:
            self._audit.log(
                AuditEventBuilder.validation_failed(
                    profile.label,
                    [issue.model_dump() for issue in result.issues],
                    correlation_id,
                )
            )
        return result

    async def add_transaction(
        self,
        profile: ProfileContext,
        draft: TransactionDraft,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """Returns the stored transaction, or None when validation failed."""
        correlation_id = create_correlation_id()
        result = await self._validate(profile, draft, correlation_id)
        if result.has_errors:
            return None, result

        transaction = draft.to_transaction()
        await self._transactions.add(profile, transaction)
        self._audit.log(
            AuditEventBuilder.transaction_added(
                profile.label, transaction.id, transaction.type.value, correlation_id
            )
        )
        return transaction, result

    async def update_transaction(
        self,
        profile: ProfileContext,
        transaction_id: str,
        draft: TransactionDraft,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Replace a transaction with the edited draft (same id).

        An unknown id writes nothing and returns None with a clean result.
        """
        correlation_id = create_correlation_id()
        result = await self._validate(profile, draft, correlation_id)
        if result.has_errors:
            return None, result

        transaction = draft.to_transaction(transaction_id)
        replaced = await self._transactions.update(profile, transaction)
        self._audit.log(
            AuditEventBuilder.transaction_updated(
                profile.label, transaction_id, replaced, correlation_id
            )
        )
        return (transaction if replaced else None), result

    def describe(self, result: ValidationResult) -> str:
        """Inline form message for a validation result."""
        return self._validator.get_user_friendly_summary(result)

    async def find_transaction(
        self,
        profile: ProfileContext,
        transaction_id: str,
    ) -> Optional[Transaction]:
        for transaction in await self._transactions.list(profile):
            if transaction.id == transaction_id:
                return transaction
        return None

    async def add_goal(
        self,
        profile: ProfileContext,
        name: Optional[str],
        target_amount: Optional[Decimal],
        deadline: Optional[date] = None,
    ) -> tuple[Optional[Goal], ValidationResult]:
        result = self._validator.validate_goal(name, target_amount)
        if result.has_errors:
            return None, result

        goal = Goal(name=name.strip(), target_amount=target_amount, deadline=deadline)
        await self._goals.add(profile, goal)
        self._audit.log(AuditEventBuilder.goal_added(profile.label, goal.id, goal.name))
        return goal, result

    async def remove_goal(self, profile: ProfileContext, goal_id: str) -> bool:
        removed = await self._goals.remove(profile, goal_id)
        if removed:
            self._audit.log(AuditEventBuilder.goal_removed(profile.label, goal_id))
        return removed

    async def settings(self, profile: ProfileContext) -> UserSettings:
        return await self._settings.get(profile)

    async def goals(self, profile: ProfileContext) -> list[Goal]:
        return await self._goals.list(profile)

    async def dashboard(
        self,
        profile: ProfileContext,
        type_filter: Optional[TransactionType] = None,
    ) -> DashboardView:
        """Scope totals plus the scoped list, newest date first."""
        settings = await self._settings.get(profile)
        transactions = await self._transactions.list(profile)

        listed = sort_by_date(filter_by_type(filter_by_scope(transactions, settings), type_filter))
        return DashboardView(
            totals=dashboard_totals(transactions, settings),
            transactions=listed,
            currency_symbol=settings.currency_symbol,
            privacy_mode=settings.privacy_mode_enabled,
        )

    async def analytics(
        self,
        profile: ProfileContext,
        window: Optional[TimeWindow] = None,
    ) -> AnalyticsView:
        window = window or TimeWindow.all_time()
        settings = await self._settings.get(profile)
        transactions = await self._transactions.list(profile)
        today = self._today()

        return AnalyticsView(
            window=window,
            accounts=account_balances(transactions, settings),
            categories=category_breakdown(transactions, window, today),
            tags=tag_breakdown(transactions, settings, window, today),
            currency_symbol=settings.currency_symbol,
            privacy_mode=settings.privacy_mode_enabled,
        )

    async def goal_overview(self, profile: ProfileContext) -> list[GoalProgress]:
        goals = await self._goals.list(profile)
        transactions = await self._transactions.list(profile)
        return all_goal_progress(goals, transactions)


class InsightsFlow:
    """
    Flow:
    1. Check AI is enabled for the profile
    2. Send the most recent transactions to the advisor
    3. Return its text (or a fallback)
    """

    def __init__(
        self,
        transactions: TransactionStore,
        settings_store: SettingsStore,
        advisor: Optional[FinancialAdvisorAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transactions = transactions
        self._settings = settings_store
        self._audit = audit_logger or AuditLogger()
        self._advisor = advisor or FinancialAdvisorAgent(audit_logger=self._audit)

    async def advice(self, profile: ProfileContext) -> AdviceResponse:
        settings = await self._settings.get(profile)
        if not settings.enable_ai:
            return AdviceResponse(text=AI_DISABLED_MESSAGE, used_fallback=True)

        transactions = await self._transactions.list(profile)
        return await self._advisor.generate_advice(
            transactions,
            currency_symbol=settings.currency_symbol,
            profile=profile.label,
            correlation_id=create_correlation_id(),
        )


class ProfileFlow:
    """Sign-in, PIN lock, real/foreign switching, export and wipe."""

    def __init__(
        self,
        backend: KeyValueStore,
        resolver: ProfileResolver,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._backend = backend
        self._resolver = resolver
        self._users = UserStore(backend)
        self._pins = PinStore(backend)
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    async def current_profile(self) -> ProfileContext:
        return await self._resolver.resolve()

    async def set_foreign(self, enabled: bool) -> ProfileContext:
        return await self._resolver.set_foreign(enabled, create_correlation_id())

    async def current_user(self, profile: ProfileContext) -> Optional[User]:
        return await self._users.get(profile)

    async def login(self, profile: ProfileContext, user: User) -> None:
        await self._users.save(profile, user)

    async def has_pin(self, profile: ProfileContext) -> bool:
        return await self._pins.has_pin(profile)

    async def set_pin(self, profile: ProfileContext, pin: str) -> None:
        """Raises InvalidPinError unless the PIN is exactly 4 digits."""
        await self._pins.set_pin(profile, pin)

    async def verify_pin(self, profile: ProfileContext, pin: str) -> bool:
        return await self._pins.verify_pin(profile, pin)

    async def logout(self, profile: ProfileContext) -> None:
        """Forget this profile's user and the shared PIN. Ledger data stays."""
        await self._users.clear(profile)
        await self._pins.clear(profile)

    async def export(self, profile: ProfileContext) -> str:
        return await export_profile(
            self._backend, profile, self._audit, self._clock, create_correlation_id()
        )

    async def wipe(self, profile: ProfileContext) -> list[str]:
        return await wipe_profile(self._backend, profile, self._audit, create_correlation_id())


# =============================================================================
# FACTORY
# =============================================================================

@dataclass
class AppComponents:
    backend: KeyValueStore
    audit_logger: AuditLogger
    profiles: ProfileFlow
    transactions: TransactionFlow
    insights: InsightsFlow
    accounts: AccountManager
    exchange: ExchangeCardCache


def create_backend(use_storage: bool = True) -> KeyValueStore:
    """
    Google Sheets when configured and requested, otherwise in-memory.

    A Sheets backend that can't be configured falls back to memory with a
    warning so the app still starts.
    """
    app_settings = get_settings().app
    if not use_storage or app_settings.storage_backend != "google_sheets":
        return InMemoryKeyValueStore()

    try:
        return GoogleSheetsKeyValueStore()
    except Exception as e:
        # Storage not configured - continue without it
        logger.warning("storage_not_configured", error=str(e))
        return InMemoryKeyValueStore()


def create_app_components(
    use_storage: bool = True,
    backend: Optional[KeyValueStore] = None,
    advisor: Optional[FinancialAdvisorAgent] = None,
    rate_fetcher: Optional[RateFetcher] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured persistent backend.
                    Set to False for testing without storage.
        backend: Explicit backend (overrides use_storage)
        advisor: Advisor to use instead of the Gemini-backed default
        rate_fetcher: Rate source to use instead of the HTTP fetcher
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger()
    backend = backend or create_backend(use_storage)

    transactions = TransactionStore(backend)
    settings_store = SettingsStore(backend)
    goals = GoalStore(backend)

    resolver = ProfileResolver(
        backend,
        key_prefix=app_settings.key_prefix,
        audit_logger=audit_logger,
    )

    exchange_settings = settings.exchange
    exchange = ExchangeCardCache(
        backend,
        rate_fetcher or ExchangeRateFetcher(exchange_settings, audit_logger),
        max_cards=exchange_settings.max_cards,
        audit_logger=audit_logger,
    )

    return AppComponents(
        backend=backend,
        audit_logger=audit_logger,
        profiles=ProfileFlow(backend, resolver, audit_logger),
        transactions=TransactionFlow(transactions, settings_store, goals, audit_logger=audit_logger),
        insights=InsightsFlow(transactions, settings_store, advisor, audit_logger),
        accounts=AccountManager(transactions, settings_store, audit_logger),
        exchange=exchange,
    )
