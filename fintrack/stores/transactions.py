"""
Transaction Store

The transaction log of a profile, most recently added first.

DESIGN DECISION: There is no single-delete. Transactions are append-only
apart from whole-record replacement by id, and clear() for a wipe.
"""

import structlog

from fintrack.models.ledger import Transaction
from fintrack.models.profile import ProfileContext, RecordKey
from fintrack.stores.base import ListRecordStore

logger = structlog.get_logger("fintrack.stores.transactions")


class TransactionStore(ListRecordStore):
    record = RecordKey.TRANSACTIONS

    async def list(self, profile: ProfileContext) -> list[Transaction]:
        """All readable transactions, most recently added first."""
        raw = await self._read_raw_list(profile)
        return self._parse_entries(profile, raw, Transaction)

    async def add(self, profile: ProfileContext, transaction: Transaction) -> None:
        raw = await self._read_list_for_write(profile)
        raw.insert(0, transaction.to_record())
        await self._write(profile, raw)

    async def update(self, profile: ProfileContext, transaction: Transaction) -> bool:
        """
        Replace the record with the same id.

        An unknown id changes nothing and returns False.
        """
        raw = await self._read_list_for_write(profile)
        for idx, item in enumerate(raw):
            if isinstance(item, dict) and item.get("id") == transaction.id:
                raw[idx] = transaction.to_record()
                await self._write(profile, raw)
                return True

        logger.debug(
            "transaction_update_skipped",
            profile=profile.label,
            transaction_id=transaction.id,
        )
        return False

    async def rewrite_account(
        self,
        profile: ProfileContext,
        old_name: str,
        new_name: str,
    ) -> int:
        """
        Point every bankAccount/toAccount equal to old_name at new_name.

        Entries that don't reference old_name are written back untouched.
        Returns how many entries changed; nothing is written when none did.
        """
        raw = await self._read_list_for_write(profile)
        changed = 0
        for item in raw:
            if not isinstance(item, dict):
                continue
            touched = False
            for field in ("bankAccount", "toAccount"):
                if item.get(field) == old_name:
                    item[field] = new_name
                    touched = True
            if touched:
                changed += 1

        if changed:
            await self._write(profile, raw)
        return changed

    async def clear(self, profile: ProfileContext) -> None:
        await self._remove(profile)
