"""
Account and Category Management

DESIGN DECISION: Renaming an account writes the transactions first and
the settings second. If the second write fails, transactions name an
account that settings don't declare yet: visible, and repaired by simply
retrying the rename. The opposite order could leave settings naming an
account that no transaction uses, which nobody would ever notice.

Every other operation here edits the settings record of one profile and
refuses (returns False, writes nothing) instead of raising when a policy
forbids the change.
"""

from typing import Optional
from uuid import UUID

import structlog

from fintrack.audit import AuditLogger
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.exchange import find_currency
from fintrack.models.ledger import (
    PROTECTED_ACCOUNTS,
    CategoryKind,
    DashboardScope,
    UserSettings,
)
from fintrack.models.profile import ProfileContext
from fintrack.stores import SettingsStore, TransactionStore

logger = structlog.get_logger("fintrack.accounts")

# Money can always be parked in cash
PROTECTED_PARK_ACCOUNTS = ("Cash",)


def _replace(names: list[str], old: str, new: str) -> list[str]:
    return [new if name == old else name for name in names]


class AccountManager:
    """Settings mutations that must keep accounts and transactions consistent."""

    def __init__(
        self,
        transactions: TransactionStore,
        settings_store: SettingsStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transactions = transactions
        self._settings = settings_store
        self._audit = audit_logger or AuditLogger()

    # =========================================================================
    # RENAME
    # =========================================================================

    async def rename_account(
        self,
        profile: ProfileContext,
        old_name: str,
        new_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Rename a bank or park account everywhere it appears.

        Rejected (False, nothing written) when the new name is blank, equals
        the old one, or is already taken, or when old_name isn't declared.
        Protected accounts may be renamed; they just can't be deleted.
        """
        new_name = (new_name or "").strip()
        settings = await self._settings.get(profile)
        declared = set(settings.bank_accounts) | set(settings.park_accounts)

        reason = None
        if not new_name:
            reason = "new name is empty"
        elif new_name == old_name:
            reason = "new name equals old name"
        elif new_name in declared:
            reason = f"an account named {new_name} already exists"
        elif old_name not in declared:
            reason = f"no account named {old_name}"

        if reason:
            self._audit.log(
                AuditEventBuilder.account_rename_rejected(
                    profile.label, old_name, new_name, reason, correlation_id
                )
            )
            return False

        rewritten = await self._transactions.rewrite_account(profile, old_name, new_name)

        updated = settings.model_copy(update={
            "bank_accounts": _replace(settings.bank_accounts, old_name, new_name),
            "park_accounts": _replace(settings.park_accounts, old_name, new_name),
            "primary_account": (
                new_name if settings.primary_account == old_name
                else settings.primary_account
            ),
        })
        await self._settings.save(profile, updated)

        self._audit.log(
            AuditEventBuilder.account_renamed(
                profile.label, old_name, new_name, rewritten, correlation_id
            )
        )
        return True

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def add_bank_account(self, profile: ProfileContext, name: str) -> bool:
        """Declare a bank account; it also becomes a place money can be parked."""
        name = (name or "").strip()
        settings = await self._settings.get(profile)
        if not name or name in settings.bank_accounts:
            return False

        park_accounts = settings.park_accounts
        if name not in park_accounts:
            park_accounts = park_accounts + [name]

        await self._commit(
            profile,
            settings.model_copy(update={
                "bank_accounts": settings.bank_accounts + [name],
                "park_accounts": park_accounts,
            }),
            f"bank account added: {name}",
        )
        return True

    async def remove_bank_account(self, profile: ProfileContext, name: str) -> bool:
        """
        Refused for protected accounts and for the current primary account.

        Transactions booked on the account keep its name.
        """
        settings = await self._settings.get(profile)
        if name not in settings.bank_accounts:
            return False
        if name in PROTECTED_ACCOUNTS or name == settings.primary_account:
            logger.info("bank_account_remove_refused", profile=profile.label, account=name)
            return False

        await self._commit(
            profile,
            settings.model_copy(update={
                "bank_accounts": [a for a in settings.bank_accounts if a != name],
            }),
            f"bank account removed: {name}",
        )
        return True

    async def add_park_account(self, profile: ProfileContext, name: str) -> bool:
        name = (name or "").strip()
        settings = await self._settings.get(profile)
        if not name or name in settings.park_accounts:
            return False

        await self._commit(
            profile,
            settings.model_copy(update={"park_accounts": settings.park_accounts + [name]}),
            f"park account added: {name}",
        )
        return True

    async def remove_park_account(self, profile: ProfileContext, name: str) -> bool:
        settings = await self._settings.get(profile)
        if name not in settings.park_accounts or name in PROTECTED_PARK_ACCOUNTS:
            return False

        await self._commit(
            profile,
            settings.model_copy(update={
                "park_accounts": [a for a in settings.park_accounts if a != name],
            }),
            f"park account removed: {name}",
        )
        return True

    async def set_primary_account(self, profile: ProfileContext, name: str) -> bool:
        settings = await self._settings.get(profile)
        if name not in settings.bank_accounts:
            return False
        if name == settings.primary_account:
            return True

        await self._commit(
            profile,
            settings.model_copy(update={"primary_account": name}),
            f"primary account: {name}",
        )
        return True

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def add_category(
        self,
        profile: ProfileContext,
        kind: CategoryKind,
        name: str,
    ) -> bool:
        name = (name or "").strip()
        settings = await self._settings.get(profile)
        current = settings.categories_for(kind)
        if not name or name in current:
            return False

        await self._commit(
            profile,
            settings.model_copy(update={f"{kind.value}_categories": current + [name]}),
            f"{kind.value} category added: {name}",
        )
        return True

    async def remove_category(
        self,
        profile: ProfileContext,
        kind: CategoryKind,
        name: str,
    ) -> bool:
        """Existing transactions keep the category name as their own bucket."""
        settings = await self._settings.get(profile)
        current = settings.categories_for(kind)
        if name not in current:
            return False

        await self._commit(
            profile,
            settings.model_copy(update={
                f"{kind.value}_categories": [c for c in current if c != name],
            }),
            f"{kind.value} category removed: {name}",
        )
        return True

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def set_dashboard_scope(self, profile: ProfileContext, scope: DashboardScope) -> bool:
        settings = await self._settings.get(profile)
        await self._commit(
            profile,
            settings.model_copy(update={"dashboard_scope": DashboardScope(scope)}),
            f"dashboard scope: {DashboardScope(scope).value}",
        )
        return True

    async def set_currency(self, profile: ProfileContext, code: str) -> bool:
        """Only currencies from the supported table can be the display currency."""
        currency = find_currency(code)
        if currency is None:
            return False

        settings = await self._settings.get(profile)
        await self._commit(
            profile,
            settings.model_copy(update={
                "currency_code": currency.code,
                "currency_symbol": currency.symbol,
            }),
            f"currency: {currency.code}",
        )
        return True

    async def set_privacy_mode(self, profile: ProfileContext, enabled: bool) -> bool:
        settings = await self._settings.get(profile)
        await self._commit(
            profile,
            settings.model_copy(update={"privacy_mode_enabled": bool(enabled)}),
            f"privacy mode: {'on' if enabled else 'off'}",
        )
        return True

    async def set_ai_enabled(self, profile: ProfileContext, enabled: bool) -> bool:
        settings = await self._settings.get(profile)
        await self._commit(
            profile,
            settings.model_copy(update={"enable_ai": bool(enabled)}),
            f"AI advice: {'on' if enabled else 'off'}",
        )
        return True

    async def set_tag_limit(self, profile: ProfileContext, tag: str, limit: int) -> bool:
        """Limits are clamped to 0..100 percent."""
        settings = await self._settings.get(profile)
        limits = dict(settings.tag_limits)
        limits[tag] = min(max(int(limit), 0), 100)

        await self._commit(
            profile,
            settings.model_copy(update={"tag_limits": limits}),
            f"tag limit {tag}: {limits[tag]}%",
        )
        return True

    async def _commit(
        self,
        profile: ProfileContext,
        settings: UserSettings,
        changed: str,
    ) -> UserSettings:
        saved = await self._settings.save(profile, settings)
        self._audit.log(AuditEventBuilder.settings_saved(profile.label, changed))
        return saved
