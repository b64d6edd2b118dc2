"""
Exchange Interface — Abstract Contract for All Exchanges

This module defines the abstract base class that all exchange adapters must implement.
By enforcing a consistent interface, we ensure:
- Every exchange is fetched the same way, with the same failure behavior
- Exchange-specific types (wire models, signing, error envelopes) never leak out
- New exchanges can be added without touching the aggregation stage

Design Philosophy:
    "Program to an interface, not an implementation"

    The aggregation code works with ExchangeApi, not with BitBayExchange or
    any other concrete adapter.

Two Entry Points:
    fetch_transactions()  -> FetchResult
        The discriminated outcome: TransactionHistory on success, otherwise a
        TransportError, DecodeError or ExchangeBusinessError value.

    transactions()        -> List[Transaction]
        The degrade-to-empty contract: a failure is reported on the error log
        and an empty list is returned. Kept for callers that only want the
        ledger rows.

Example:
    class BitBayExchange(ExchangeApi):
        name = "bitbay"

        async def fetch_transactions(self, query=None):
            # BitBay-specific request, decode and mapping
            ...

    exchange = manager.get_exchange("bitbay")
    rows = await exchange.transactions()
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from core.errors import FetchResult, TransportError
from core.logging import logger
from core.schemas import HistoryQuery, Transaction


class ExchangeApi(ABC):
    """
    Abstract Base Class for Exchange Adapters

    Class Attributes:
        name: Unique identifier for the exchange (lowercase, e.g., "bitbay")
        required_credentials: Credential names the adapter extracts at construction

    Abstract Methods (MUST be implemented by all exchanges):
        - fetch_transactions: One fetch-decode-map pass returning a FetchResult

    Optional Methods (can be overridden):
        - shutdown: Release the transport
    """

    # ============================================
    # Class Attributes (must be set by subclasses)
    # ============================================

    name: str
    """Unique exchange identifier (lowercase). Example: "bitbay" """

    required_credentials: tuple = ()
    """Names looked up in the credential set, e.g. ("publicKey", "privateKey")"""

    # ============================================
    # Trade History
    # ============================================

    @abstractmethod
    async def fetch_transactions(self, query: Optional[HistoryQuery] = None) -> FetchResult:
        """
        Fetch the account's trade history and classify the outcome.

        Args:
            query: Optional filter; None means the complete, unfiltered history

        Returns:
            FetchResult: TransactionHistory with transactions in the exchange's
            own order, or one of TransportError / DecodeError /
            ExchangeBusinessError.

        Notes:
            - Must not raise for network, HTTP, payload or exchange-reported failures
            - Nothing is cached; every call performs a fresh request
        """
        ...

    async def transactions(self, query: Optional[HistoryQuery] = None) -> List[Transaction]:
        """
        Fetch the trade history, degrading to an empty list on failure.

        Any failure is reported through report_failure() before the empty
        list is returned. An exception escaping fetch_transactions() is
        reported the same way, as a TransportError.

        Example:
            >>> rows = await exchange.transactions()
            >>> print(f"{exchange.name}: {len(rows)} trades")
        """
        try:
            result = await self.fetch_transactions(query)
        except Exception as e:
            logger.debug(f"Unexpected error fetching {self.name}", exc_info=True)
            result = TransportError.from_exception(self.name, e)

        if not result.ok:
            self.report_failure(result)
            return []
        return list(result.transactions)

    def report_failure(self, result: FetchResult) -> None:
        """Log a classified failure at ERROR severity."""
        logger.error(result.describe())

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def shutdown(self) -> None:
        """
        Release the adapter's transport.

        Notes:
            - Default implementation does nothing
            - Should not raise
        """
        pass

    def __repr__(self) -> str:
        """String representation of the exchange."""
        return f"<{self.__class__.__name__}(name='{self.name}')>"
