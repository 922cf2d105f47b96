"""
Exchange Card Cache

DESIGN DECISION: A card only changes when the user asks for it (create,
refresh, swap). There is no background refresh and no retry: a failed
fetch marks the rate unknown and leaves last_updated where it was, so
the card says honestly when it was last right.

At most three cards per profile. The cap is a hard ceiling; creating a
fourth raises instead of evicting an old one.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional
from uuid import UUID

import aiohttp
import structlog

from fintrack.audit import AuditLogger
from fintrack.config import ExchangeRateSettings, get_settings
from fintrack.models.audit import AuditEventBuilder
from fintrack.models.exchange import ExchangeCard, exchange_currency_codes
from fintrack.models.profile import ProfileContext, RecordKey
from fintrack.services.storage import KeyValueStore
from fintrack.stores.base import ListRecordStore

logger = structlog.get_logger("fintrack.exchange")

DEFAULT_MAX_CARDS = 3


class ExchangeCardLimitError(Exception):
    """Raised when a profile already holds the maximum number of cards."""
    pass


class InvalidCurrencyPairError(ValueError):
    """Raised for unknown currency codes or a pair of identical codes."""
    pass


def parse_rate(payload: Any, to_currency: str) -> Optional[Decimal]:
    """Pull rates[to] out of a rates document; 0, absent or junk means unknown."""
    if not isinstance(payload, dict):
        return None
    rates = payload.get("rates")
    if not isinstance(rates, dict):
        return None
    value = rates.get(to_currency)
    if value is None or isinstance(value, bool):
        return None
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


# =============================================================================
# FETCHERS
# =============================================================================

class RateFetcher(ABC):
    """Source of live rates. Returns None instead of raising."""

    @abstractmethod
    async def fetch_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        pass


class ExchangeRateFetcher(RateFetcher):
    """
    GETs {base_url}/{FROM} and reads rates[TO] from the JSON body.

    Any HTTP, timeout or decode failure is logged and reported as None.
    """

    SERVICE_NAME = "exchange_rate_api"

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().exchange
        self._audit = audit_logger or AuditLogger()

    async def fetch_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        url = f"{self._settings.base_url.rstrip('/')}/{from_currency}"
        timeout = aiohttp.ClientTimeout(total=self._settings.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._audit.log_external_service_error(
                service=self.SERVICE_NAME,
                error_message=f"{from_currency}->{to_currency}: {type(e).__name__}: {e}",
            )
            return None

        rate = parse_rate(data, to_currency)
        if rate is None:
            logger.warning("rate_missing", pair=f"{from_currency}/{to_currency}")
        return rate


# =============================================================================
# STORE + CACHE
# =============================================================================

class ExchangeCardStore(ListRecordStore):
    record = RecordKey.EXCHANGE_RATES

    async def list(self, profile: ProfileContext) -> list[ExchangeCard]:
        raw = await self._read_raw_list(profile)
        return self._parse_entries(profile, raw, ExchangeCard)

    async def save_all(self, profile: ProfileContext, cards) -> None:
        """Replace every card. Refuses when the stored record can't be decoded."""
        await self._read_list_for_write(profile)
        await self._write(profile, [card.to_record() for card in cards])

    async def clear(self, profile: ProfileContext) -> None:
        await self._remove(profile)


class ExchangeCardCache:
    """The exchange cards of a profile, refreshed on demand."""

    def __init__(
        self,
        backend: KeyValueStore,
        fetcher: RateFetcher,
        clock: Callable[[], datetime] = datetime.now,
        max_cards: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = ExchangeCardStore(backend)
        self._fetcher = fetcher
        self._clock = clock
        self._max_cards = max_cards or DEFAULT_MAX_CARDS
        self._audit = audit_logger or AuditLogger()

    @property
    def max_cards(self) -> int:
        return self._max_cards

    async def list(self, profile: ProfileContext) -> list[ExchangeCard]:
        return await self._store.list(profile)

    async def create(
        self,
        profile: ProfileContext,
        from_currency: str,
        to_currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExchangeCard:
        """
        Add a card and fetch its first rate.

        Raises:
            InvalidCurrencyPairError: unknown code, or from == to
            ExchangeCardLimitError: the profile already has max_cards cards
        """
        from_code = (from_currency or "").strip().upper()
        to_code = (to_currency or "").strip().upper()
        known = exchange_currency_codes()
        if from_code not in known or to_code not in known:
            raise InvalidCurrencyPairError(f"Unsupported currency pair {from_code}/{to_code}")
        if from_code == to_code:
            raise InvalidCurrencyPairError("Pick two different currencies")

        if len(await self._store.list(profile)) >= self._max_cards:
            raise ExchangeCardLimitError(
                f"At most {self._max_cards} exchange cards; delete one first"
            )

        card = ExchangeCard(from_currency=from_code, to_currency=to_code)
        card = await self._with_fresh_rate(card)

        cards = await self._store.list(profile)
        if len(cards) >= self._max_cards:
            raise ExchangeCardLimitError(
                f"At most {self._max_cards} exchange cards; delete one first"
            )
        cards.append(card)
        await self._store.save_all(profile, cards)

        self._audit.log(
            AuditEventBuilder.exchange_card_created(
                profile.label, card.id, self._pair(card), card.rate is not None, correlation_id
            )
        )
        return card

    async def refresh(
        self,
        profile: ProfileContext,
        card_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExchangeCard]:
        """Re-fetch one card's rate. Unknown ids return None."""
        card = await self._find(profile, card_id)
        if card is None:
            return None
        refreshed = await self._with_fresh_rate(card)
        return await self._replace(profile, refreshed, correlation_id)

    async def refresh_all(self, profile: ProfileContext) -> "list[ExchangeCard]":
        refreshed = []
        for card in await self._store.list(profile):
            updated = await self.refresh(profile, card.id)
            if updated is not None:
                refreshed.append(updated)
        return refreshed

    async def swap(
        self,
        profile: ProfileContext,
        card_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExchangeCard]:
        """Exchange from/to and fetch the rate of the reversed pair."""
        card = await self._find(profile, card_id)
        if card is None:
            return None
        swapped = card.model_copy(update={
            "from_currency": card.to_currency,
            "to_currency": card.from_currency,
        })
        swapped = await self._with_fresh_rate(swapped)
        return await self._replace(profile, swapped, correlation_id)

    async def update_amount(
        self,
        profile: ProfileContext,
        card_id: str,
        amount: Any,
    ) -> Optional[ExchangeCard]:
        """Change the display multiplier. No fetch; negative or unparsable becomes 0."""
        card = await self._find(profile, card_id)
        if card is None:
            return None

        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            value = Decimal("0")
        if not value.is_finite() or value < 0:
            value = Decimal("0")

        cards = await self._store.list(profile)
        updated = card.model_copy(update={"amount": value})
        await self._store.save_all(
            profile, [updated if c.id == card_id else c for c in cards]
        )
        return updated

    async def delete(
        self,
        profile: ProfileContext,
        card_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        cards = await self._store.list(profile)
        kept = [c for c in cards if c.id != card_id]
        if len(kept) == len(cards):
            return False

        await self._store.save_all(profile, kept)
        self._audit.log(
            AuditEventBuilder.exchange_card_deleted(profile.label, card_id, correlation_id)
        )
        return True

    async def clear(self, profile: ProfileContext) -> None:
        await self._store.clear(profile)

    async def _find(self, profile: ProfileContext, card_id: str) -> Optional[ExchangeCard]:
        for card in await self._store.list(profile):
            if card.id == card_id:
                return card
        return None

    async def _with_fresh_rate(self, card: ExchangeCard) -> ExchangeCard:
        rate = await self._fetcher.fetch_rate(card.from_currency, card.to_currency)
        if rate is None:
            # Unknown rate; last_updated keeps the time of the last good fetch
            return card.model_copy(update={"rate": None})
        return card.model_copy(update={"rate": rate, "last_updated": self._clock()})

    async def _replace(
        self,
        profile: ProfileContext,
        card: ExchangeCard,
        correlation_id: Optional[UUID],
    ) -> Optional[ExchangeCard]:
        # Re-read: the card may have been deleted while the fetch was in flight
        cards = await self._store.list(profile)
        if not any(c.id == card.id for c in cards):
            return None

        await self._store.save_all(profile, [card if c.id == card.id else c for c in cards])
        self._audit.log(
            AuditEventBuilder.exchange_card_refreshed(
                profile.label, card.id, self._pair(card), card.rate is not None, correlation_id
            )
        )
        return card

    @staticmethod
    def _pair(card: ExchangeCard) -> str:
        return f"{card.from_currency}/{card.to_currency}"
