"""
BitBay Exchange Adapter

This module implements the ExchangeApi for the BitBay private REST API
(trading history of the account owning the API keys).

Endpoints Used:
    REST:
        - GET /rest/trading/history/transactions - Executed trades

Pipeline of one fetch_transactions() call:
    1. Sign and send one GET (plus transient-failure retries)
    2. Non-2xx or network failure        -> TransportError
    3. Body not valid / not the schema   -> DecodeError
    4. Envelope status "Fail"            -> ExchangeBusinessError
    5. Otherwise map items, in response order, to Transaction

Structure:
    exchanges/bitbay/
    ├── __init__.py          # This file (BitBayExchange class)
    ├── api_client.py        # Signed HTTP transport with retry policy
    ├── models.py            # Wire models, mapper and error code table
    └── signer.py            # API-Hash header computation
"""

from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError

from core.credentials import require_credentials
from core.errors import DecodeError, ExchangeBusinessError, FetchResult, TransactionHistory, TransportError
from core.exchange_interface import ExchangeApi
from core.logging import get_logger
from core.schemas import Credential, HistoryQuery
from .api_client import BitBayAPIClient
from .models import ERROR_DESCRIPTIONS, BitBayTransactionsResponse
from .signer import BitBaySigner


logger = get_logger(__name__)


class BitBayExchange(ExchangeApi):
    """
    BitBay Exchange Adapter

    Attributes:
        name: Exchange identifier ("bitbay")
        required_credentials: ("publicKey", "privateKey")
        date_format: Shared format for textual timestamps
        signer: Request signer bound to this adapter's keys

    Example:
        >>> exchange = BitBayExchange([
        ...     Credential(name="publicKey", value="..."),
        ...     Credential(name="privateKey", value="..."),
        ... ])
        >>> result = await exchange.fetch_transactions()
        >>> await exchange.shutdown()

    Notes:
        - Credentials are checked at construction (CredentialError if missing)
        - The HTTP client is built on first use and kept for the adapter's lifetime
        - Nothing from a previous call is cached
    """

    name = "bitbay"
    required_credentials = ("publicKey", "privateKey")

    def __init__(
        self,
        credentials: Iterable[Credential],
        date_format: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        history_limit: Optional[int] = None,
        verbose: Optional[bool] = None,
        clock: Optional[Callable[[], int]] = None,
        operation_id: Optional[Callable[[], str]] = None
    ):
        """
        Initialize the BitBay adapter.

        Unset options fall back to the global settings. No network activity
        happens here.

        Raises:
            CredentialError: If publicKey or privateKey is missing or duplicated
        """
        # Import settings here to avoid circular imports
        from core.config import settings

        keys = require_credentials(credentials, self.required_credentials, self.name)
        self.signer = BitBaySigner(keys["publicKey"], keys["privateKey"], clock, operation_id)

        self.date_format = date_format or settings.date_format
        self.base_url = base_url or settings.bitbay_base_url
        self.request_timeout = request_timeout if request_timeout is not None else settings.request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.retry_backoff
        self.history_limit = history_limit if history_limit is not None else settings.history_limit
        self.verbose = verbose if verbose is not None else settings.debug

        self._client: Optional[BitBayAPIClient] = None

        logger.debug(f"BitBayExchange created (base_url={self.base_url})")

    @property
    def client(self) -> BitBayAPIClient:
        """HTTP transport, constructed on first access and reused afterwards."""
        if self._client is None:
            self._client = BitBayAPIClient(
                self.signer,
                base_url=self.base_url,
                timeout=self.request_timeout,
                max_retries=self.max_retries,
                retry_backoff=self.retry_backoff,
                verbose=self.verbose,
                exchange=self.name,
            )
        return self._client

    # ============================================
    # Trade History
    # ============================================

    async def fetch_transactions(self, query: Optional[HistoryQuery] = None) -> FetchResult:
        """
        Fetch and classify the account's trade history.

        Args:
            query: Optional filter; defaults to the full, unfiltered history

        Returns:
            FetchResult: see module docstring for the classification order
        """
        query = query or HistoryQuery(limit=self.history_limit)

        response = await self.client.get_transactions(query)
        if isinstance(response, TransportError):
            return response

        return self.classify(response.body)

    def classify(self, body: Union[bytes, str]) -> FetchResult:
        """
        Turn a 2xx response body into a FetchResult.

        An empty body (or JSON null) is an empty history, not an error. A
        body that is not UTF-8 is a DecodeError carrying the replaced text.
        """
        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as e:
                return DecodeError(
                    exchange=self.name,
                    body=body.decode("utf-8", errors="replace"),
                    diagnostic=f"Response body is not valid UTF-8: {e}",
                )

        if not body.strip() or body.strip() == "null":
            logger.debug("BitBay returned an empty body; treating as empty history")
            return TransactionHistory(exchange=self.name)

        try:
            envelope = BitBayTransactionsResponse.model_validate_json(body)
        except ValidationError as e:
            return DecodeError(exchange=self.name, body=body, diagnostic=str(e))

        if envelope.failed:
            return ExchangeBusinessError(
                exchange=self.name,
                codes=tuple(envelope.errors),
                descriptions=ERROR_DESCRIPTIONS,
            )

        try:
            transactions = tuple(item.to_transaction(self.date_format) for item in envelope.items)
        except ValueError as e:
            return DecodeError(exchange=self.name, body=body, diagnostic=str(e))

        logger.info(f"Fetched {len(transactions)} BitBay transactions")
        return TransactionHistory(exchange=self.name, transactions=transactions)

    # ============================================
    # Lifecycle
    # ============================================

    async def shutdown(self) -> None:
        """Close the HTTP session if one was opened."""
        if self._client is not None:
            await self._client.close()


__all__ = ["BitBayExchange"]
