"""
Fetch Outcomes and Error Taxonomy

Every call to an exchange ends in exactly one of four outcomes:

    TransactionHistory     - success (possibly an empty history)
    TransportError         - network failure or non-2xx HTTP status;
                             the body is never parsed as a transaction list
    DecodeError            - HTTP success, but the payload does not match the
                             exchange's schema
    ExchangeBusinessError  - payload decodes, but the exchange's own envelope
                             reports a failure (bad signature, rate limit, ...)

The outcomes are plain values (frozen Pydantic models with a ``kind``
discriminator), not exceptions. Adapters return them from
``fetch_transactions()`` so callers can tell "exchange has no history" apart
from "fetch failed".

The only exception raised by this layer is CredentialError, a configuration
error detected when an adapter is constructed.

Usage:
    result = await exchange.fetch_transactions()
    if result.ok:
        ledger.extend(result.transactions)
    else:
        logger.error(result.describe())
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from core.schemas import Transaction


class CredentialError(ValueError):
    """Required credential is missing or ambiguous for an exchange."""


class _Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    exchange: str

    @property
    def ok(self) -> bool:
        return False


class TransactionHistory(_Outcome):
    """Successful fetch; transactions keep the exchange's own ordering."""

    kind: Literal["ok"] = "ok"
    transactions: Tuple[Transaction, ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def describe(self) -> str:
        return f"[{self.exchange}] Fetched {len(self.transactions)} transactions"


class TransportError(_Outcome):
    """
    Failure before any business payload was available.

    Attributes:
        status: HTTP status code (None for network-level failures)
        body: Raw error body text, if the server sent one
        reason: Short diagnostic (exception text or HTTP reason)
    """

    kind: Literal["transport"] = "transport"
    status: Optional[int] = None
    body: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_exception(cls, exchange: str, error: BaseException) -> "TransportError":
        """Failure value for an exception raised while talking to the exchange."""
        return cls(exchange=exchange, reason=f"{type(error).__name__}: {error}")

    def describe(self) -> str:
        if self.status is None:
            return f"[{self.exchange}] Transport failure: {self.reason}"
        return (
            f"[{self.exchange}] Unsuccessfully fetched transactions "
            f"error code: {self.status} body: {self.body or ''}"
        )


class DecodeError(_Outcome):
    """Response body present with a success status, but not the expected schema."""

    kind: Literal["decode"] = "decode"
    body: str
    diagnostic: str

    def describe(self) -> str:
        return (
            f"[{self.exchange}] Malformed response: {self.diagnostic}\n"
            f"Raw body: {self.body}"
        )


class ExchangeBusinessError(_Outcome):
    """
    Failure reported inside a successfully transmitted response.

    Attributes:
        codes: Machine-readable codes, in the order the exchange reported them
        descriptions: The adapter's static code -> description table
    """

    kind: Literal["business"] = "business"
    codes: Tuple[str, ...]
    descriptions: Dict[str, str] = Field(default_factory=dict)

    def describe_code(self, code: str) -> str:
        """Human-readable text for a code; unknown codes surface the raw code."""
        return self.descriptions.get(code, f"unrecognized error code {code}")

    def lines(self) -> List[str]:
        return [f"{code}: {self.describe_code(code)}" for code in self.codes]

    def describe(self) -> str:
        header = f"[{self.exchange}] Exchange reported failure"
        if not self.codes:
            return f"{header} without error codes"
        return header + "\n" + "\n".join(self.lines())


FetchResult = Annotated[
    Union[TransactionHistory, TransportError, DecodeError, ExchangeBusinessError],
    Field(discriminator="kind"),
]
"""Discriminated union of all fetch outcomes."""

FetchFailure = Union[TransportError, DecodeError, ExchangeBusinessError]
