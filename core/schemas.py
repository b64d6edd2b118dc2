"""
Normalized Data Schemas

This module defines Pydantic models for the ledger data types.
These schemas provide a unified, exchange-agnostic data format.

Key Principle:
    Regardless of which exchange the trade history comes from (BitBay, ...),
    it gets normalized into these standardized schemas. This allows the tax
    aggregation stage to work with one consistent data structure.

Models:
    - Credential: Named secret (public/private key) for an exchange
    - Transaction: One executed trade, immutable once constructed
    - HistoryQuery: Filter payload for a transaction history request
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


TransactionSide = Literal["buy", "sell"]


# ============================================
# Credentials
# ============================================

class Credential(BaseModel):
    """
    Opaque name/value pair supplied per exchange.

    Example:
        >>> Credential(name="publicKey", value="0f3c...")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Credential name", examples=["publicKey", "privateKey"])
    value: str = Field(..., repr=False, description="Secret value")


# ============================================
# Canonical Transaction
# ============================================

class Transaction(BaseModel):
    """
    Canonical Trade Record

    Exchange-agnostic record of one executed trade. This is the only type
    produced by the exchange layer; everything exchange-specific stays inside
    the adapters.

    Attributes:
        exchange: Source exchange identifier (lowercase)
        transaction_id: Exchange-assigned trade identifier
        timestamp: Execution time in UTC
        market: Market code as "BASE-QUOTE" (e.g., "BTC-PLN")
        base_currency: Traded asset (e.g., "BTC")
        quote_currency: Pricing asset (e.g., "PLN")
        side: "buy" or "sell" from the account owner's point of view
        amount: Traded amount in base currency
        rate: Price of one unit of base currency in quote currency
        fee: Commission charged by the exchange
        was_taker: True if the order took liquidity (None if unknown)

    Example:
        >>> tx = Transaction(
        ...     exchange="bitbay",
        ...     transaction_id="a1b2",
        ...     timestamp=datetime(2018, 6, 21, 13, 16, 26, tzinfo=timezone.utc),
        ...     market="BTC-PLN",
        ...     side="buy",
        ...     amount=Decimal("0.5"),
        ...     rate=Decimal("25000"),
        ... )
        >>> tx.total
        Decimal('12500.0')
    """

    model_config = ConfigDict(frozen=True)

    exchange: str = Field(..., description="Source exchange identifier (lowercase)")
    transaction_id: str = Field(..., description="Exchange-assigned trade identifier")
    timestamp: datetime = Field(..., description="Execution time in UTC")
    market: str = Field(..., description="Market code", examples=["BTC-PLN", "ETH-BTC"])
    side: TransactionSide
    amount: Decimal = Field(..., gt=0, description="Traded amount in base currency")
    rate: Decimal = Field(..., ge=0, description="Price in quote currency")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Commission value")
    was_taker: Optional[bool] = None

    @field_validator("exchange")
    @classmethod
    def validate_exchange(cls, v: str) -> str:
        """Ensure exchange is lowercase"""
        return v.lower()

    @field_validator("market")
    @classmethod
    def validate_market(cls, v: str) -> str:
        """Ensure market is an uppercase BASE-QUOTE pair"""
        v = v.upper()
        if v.count("-") != 1 or not all(v.split("-")):
            raise ValueError(f"Market must look like 'BASE-QUOTE', got '{v}'")
        return v

    @computed_field
    @property
    def base_currency(self) -> str:
        return self.market.split("-")[0]

    @computed_field
    @property
    def quote_currency(self) -> str:
        return self.market.split("-")[1]

    @computed_field
    @property
    def total(self) -> Decimal:
        """Value of the trade in quote currency (amount * rate)"""
        return self.amount * self.rate


# ============================================
# History Query
# ============================================

class HistoryQuery(BaseModel):
    """
    Filter payload for a transaction history request.

    The default instance asks for the complete history: no time bounds,
    no market filter and the largest page size. Field aliases are the
    camelCase names exchanges expect on the wire.

    Attributes:
        limit: Maximum number of items to return
        from_time: Lower time bound in milliseconds since epoch (inclusive)
        to_time: Upper time bound in milliseconds since epoch (inclusive)
        markets: Restrict to these market codes (empty = all markets)
        rate_from: Minimum rate
        rate_to: Maximum rate
        user_action: Only "Buy" or only "Sell" transactions

    Example:
        >>> HistoryQuery().to_payload()
        {'limit': '1000000000', 'fromTime': None, 'toTime': None, 'markets': []}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    limit: int = Field(default=1_000_000_000, gt=0)
    from_time: Optional[int] = Field(default=None, alias="fromTime")
    to_time: Optional[int] = Field(default=None, alias="toTime")
    markets: List[str] = Field(default_factory=list)
    rate_from: Optional[Decimal] = Field(default=None, alias="rateFrom")
    rate_to: Optional[Decimal] = Field(default=None, alias="rateTo")
    user_action: Optional[Literal["Buy", "Sell"]] = Field(default=None, alias="userAction")

    def to_payload(self) -> dict:
        """
        Build the JSON-ready filter dictionary.

        The four base keys are always present (null when unbounded); the
        optional rate/action filters are only sent when set.
        """
        payload = {
            "limit": str(self.limit),
            "fromTime": self.from_time,
            "toTime": self.to_time,
            "markets": [m.upper() for m in self.markets],
        }
        if self.rate_from is not None:
            payload["rateFrom"] = str(self.rate_from)
        if self.rate_to is not None:
            payload["rateTo"] = str(self.rate_to)
        if self.user_action is not None:
            payload["userAction"] = self.user_action
        return payload
