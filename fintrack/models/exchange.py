"""
Exchange Card Models

An exchange card is a small "viewer" of one currency pair: it remembers
the last rate it fetched and a display multiplier. Cards are refreshed on
demand only; nothing expires them in the background.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.models.ledger import Amount, new_record_id


class Currency(BaseModel):
    """A currency the app can display or convert."""

    code: str = Field(..., min_length=3, max_length=3)
    symbol: str
    name: str


SUPPORTED_CURRENCIES: list[Currency] = [
    Currency(code="USD", symbol="$", name="US Dollar"),
    Currency(code="EUR", symbol="€", name="Euro"),
    Currency(code="GBP", symbol="£", name="British Pound"),
    Currency(code="INR", symbol="₹", name="Indian Rupee"),
    Currency(code="JPY", symbol="¥", name="Japanese Yen"),
    Currency(code="CNY", symbol="¥", name="Chinese Yuan"),
    Currency(code="CAD", symbol="CA$", name="Canadian Dollar"),
    Currency(code="AUD", symbol="A$", name="Australian Dollar"),
    Currency(code="CHF", symbol="CHF", name="Swiss Franc"),
    Currency(code="RUB", symbol="₽", name="Russian Ruble"),
    Currency(code="BRL", symbol="R$", name="Brazilian Real"),
    Currency(code="IDR", symbol="Rp", name="Indonesian Rupiah"),
]

# Exchange cards may also quote these, even though settings can't use them
EXCHANGE_ONLY_CURRENCIES = ["SGD", "MYR"]


def find_currency(code: str) -> Optional[Currency]:
    """Look up a supported currency by ISO code (case-insensitive)."""
    code = (code or "").strip().upper()
    for currency in SUPPORTED_CURRENCIES:
        if currency.code == code:
            return currency
    return None


def exchange_currency_codes() -> list[str]:
    """Every code an exchange card may quote."""
    return [c.code for c in SUPPORTED_CURRENCIES] + EXCHANGE_ONLY_CURRENCIES


class ExchangeCard(BaseModel):
    """
    One live currency-pair viewer.

    rate is None while unknown (never fetched, or the last fetch failed).
    last_updated only moves on a successful fetch, so a stale card keeps
    showing when it was last good.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_record_id)
    from_currency: str = Field(..., alias="from", min_length=3, max_length=3)
    to_currency: str = Field(..., alias="to", min_length=3, max_length=3)
    amount: Amount = Field(default=Decimal("1"), ge=0)
    rate: Optional[Amount] = None
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")

    @field_validator("from_currency", "to_currency")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("rate")
    @classmethod
    def non_positive_rate_is_unknown(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            return None
        return v

    @property
    def converted(self) -> Optional[Decimal]:
        """amount expressed in to_currency, None while the rate is unknown."""
        if self.rate is None:
            return None
        return self.amount * self.rate

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
