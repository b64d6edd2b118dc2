"""
Exchange Manager — Central Registry for Exchange Adapters

This module provides a centralized manager for all exchange adapters.
The ExchangeManager acts as a registry and factory for exchange instances,
and collects the trade history of every registered exchange into one ledger.

Architecture Pattern:
    - _exchange_types() maps exchange names to adapter classes
    - from_settings() builds one adapter per exchange that has credentials
    - All adapters conform to ExchangeApi, so collection treats them alike

Example Usage:
    manager = ExchangeManager.from_settings(settings)
    report = await manager.collect_transactions()
    if report.failures:
        print(f"Incomplete ledger: {', '.join(report.failed_exchanges)}")
    await manager.shutdown_all()

    # Adding a new exchange:
    # 1. Create exchanges/<name>/ with an ExchangeApi subclass
    # 2. Register it in _exchange_types()
"""

import asyncio
from typing import Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict

from core.errors import FetchFailure, TransportError
from core.exchange_interface import ExchangeApi
from core.logging import logger
from core.schemas import HistoryQuery, Transaction


class LedgerReport(BaseModel):
    """
    Result of collecting every registered exchange.

    Attributes:
        transactions: Merged ledger, ordered by timestamp (stable per exchange)
        failures: One classified failure per exchange that could not be fetched
        succeeded: Names of exchanges fetched successfully (even if empty)
    """

    model_config = ConfigDict(frozen=True)

    transactions: Tuple[Transaction, ...] = ()
    failures: Tuple[FetchFailure, ...] = ()
    succeeded: Tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.failures

    @property
    def failed_exchanges(self) -> List[str]:
        return [f.exchange for f in self.failures]


def _exchange_types() -> Dict[str, Type[ExchangeApi]]:
    # Import here to avoid circular imports
    # Each exchange module imports from core, so we can't import at module level
    from exchanges.bitbay import BitBayExchange

    return {
        "bitbay": BitBayExchange,
    }


class ExchangeManager:
    """
    Central Manager for Exchange Adapters

    Attributes:
        exchanges: Dictionary mapping exchange names to adapter instances

    Example:
        >>> manager = ExchangeManager({"bitbay": BitBayExchange(credentials)})
        >>> manager.list_exchanges()
        ['bitbay']
    """

    def __init__(self, exchanges: Optional[Dict[str, ExchangeApi]] = None):
        """
        Initialize the manager with already-constructed adapters.

        Args:
            exchanges: Mapping of name to adapter (empty registry if None)
        """
        self.exchanges: Dict[str, ExchangeApi] = {}
        for name, exchange in (exchanges or {}).items():
            self.register(exchange, name)

        logger.info(f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): {', '.join(self.exchanges.keys())}")

    @classmethod
    def from_settings(cls, config=None) -> "ExchangeManager":
        """
        Build adapters for every known exchange that has credentials configured.

        Exchanges with no credentials at all are skipped. An exchange with only
        some of its credentials fails with CredentialError.

        Args:
            config: Settings instance (defaults to the global settings)
        """
        from core.config import settings

        config = config or settings
        exchanges: Dict[str, ExchangeApi] = {}

        for name, exchange_type in _exchange_types().items():
            credentials = config.credentials_for(name)
            if not credentials:
                logger.info(f"No credentials configured for {name}; skipping")
                continue
            exchanges[name] = exchange_type(
                credentials,
                config.date_format,
                request_timeout=config.request_timeout,
                max_retries=config.max_retries,
                retry_backoff=config.retry_backoff,
                history_limit=config.history_limit,
                verbose=config.debug,
            )

        return cls(exchanges)

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def register(self, exchange: ExchangeApi, name: Optional[str] = None) -> None:
        """Add an adapter under its own name (or an explicit one)."""
        name = (name or exchange.name).lower()
        if name in self.exchanges:
            raise ValueError(f"Exchange '{name}' is already registered")
        self.exchanges[name] = exchange
        logger.debug(f"Registered exchange: {name}")

    def get_exchange(self, name: str) -> ExchangeApi:
        """
        Get an exchange adapter by name.

        Raises:
            ValueError: If the exchange is not registered
        """
        name = name.lower()

        if name not in self.exchanges:
            available = ", ".join(self.exchanges.keys())
            logger.error(f"Exchange '{name}' not found. Available: {available}")
            raise ValueError(
                f"Exchange '{name}' is not registered. "
                f"Available exchanges: {available}"
            )

        return self.exchanges[name]

    def has_exchange(self, name: str) -> bool:
        return name.lower() in self.exchanges

    def list_exchanges(self) -> List[str]:
        return list(self.exchanges.keys())

    # ============================================
    # Ledger Collection
    # ============================================

    async def collect_transactions(self, query: Optional[HistoryQuery] = None) -> LedgerReport:
        """
        Fetch every registered exchange concurrently and merge the results.

        Each failure is reported on the error log and kept in the report, so
        an incomplete ledger is never mistaken for a complete one.

        Args:
            query: Optional filter applied to every exchange

        Returns:
            LedgerReport with the merged transactions and per-exchange failures
        """
        names = list(self.exchanges.keys())
        results = await asyncio.gather(
            *(self.exchanges[name].fetch_transactions(query) for name in names),
            return_exceptions=True
        )

        transactions: List[Transaction] = []
        failures = []
        succeeded = []

        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.debug(f"Unexpected error fetching {name}", exc_info=result)
                result = TransportError.from_exception(name, result)

            if result.ok:
                transactions.extend(result.transactions)
                succeeded.append(name)
            else:
                self.exchanges[name].report_failure(result)
                failures.append(result)

        # sorted() is stable, so same-time trades keep each exchange's order
        transactions = sorted(transactions, key=lambda tx: tx.timestamp)

        logger.info(
            f"Collected {len(transactions)} transactions from {len(succeeded)} exchange(s)"
            + (f"; failed: {', '.join(f.exchange for f in failures)}" if failures else "")
        )
        return LedgerReport(
            transactions=tuple(transactions),
            failures=tuple(failures),
            succeeded=tuple(succeeded),
        )

    # ============================================
    # Lifecycle Management
    # ============================================

    async def shutdown_all(self) -> None:
        """Close every adapter's transport; errors are logged, not raised."""
        logger.info("Shutting down all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.shutdown()
                logger.debug(f"{name} shut down")
            except Exception as e:
                logger.error(f"Error shutting down {name}: {e}")
                # Continue shutting down other exchanges

    def __repr__(self) -> str:
        return f"<ExchangeManager(exchanges={list(self.exchanges.keys())})>"

    def __len__(self) -> int:
        return len(self.exchanges)
