"""
BitBay REST API Client

This module provides the async HTTP transport for the BitBay private REST API.
It handles:
- Request signing (via BitBaySigner) on every attempt
- The pre-encoded JSON "query" parameter BitBay expects
- Explicit timeout and retry policy for transient failures (429, 5xx, timeouts)
- Optional verbose request/response logging

It does NOT parse the response body; classification of the payload is the
adapter's job. A call ends either with an HttpResponse (2xx) or a
TransportError value.

Usage:
    async with BitBayAPIClient(signer) as client:
        response = await client.get_transactions(HistoryQuery())
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import quote

import aiohttp
from yarl import URL

from core.errors import TransportError
from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import HistoryQuery
from exchanges.bitbay.signer import BitBaySigner


@dataclass(frozen=True)
class HttpResponse:
    """Successful (2xx) HTTP exchange; body is the raw, undecoded payload."""

    status: int
    body: bytes


class BitBayAPIClient:
    """
    Async HTTP client for the BitBay private REST API

    Attributes:
        BASE_URL: Default BitBay REST base URL
        RETRYABLE_STATUSES: HTTP statuses treated as transient
        session: aiohttp ClientSession, created on first request

    Example:
        >>> async with BitBayAPIClient(signer, max_retries=3) as client:
        ...     response = await client.get_transactions(HistoryQuery())
        ...     print(response.status)

    Notes:
        - The session is created lazily and reused until close()
        - Every attempt is signed again (fresh timestamp and operation-id)
        - Non-transient error statuses (e.g. 401) return immediately
    """

    BASE_URL = "https://api.bitbay.net/rest/"
    TRANSACTIONS_PATH = "trading/history/transactions"
    RETRYABLE_STATUSES = (429, 500, 502, 503, 504)

    def __init__(
        self,
        signer: BitBaySigner,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.5,
        verbose: bool = False,
        exchange: str = "bitbay"
    ):
        """
        Initialize the BitBay API client.

        Args:
            signer: Computes authentication headers for each request
            base_url: REST base URL (defaults to BASE_URL)
            timeout: Total timeout of one attempt in seconds
            max_retries: Maximum attempts for transient failures (>= 1)
            retry_backoff: Attempt N waits retry_backoff * N seconds before retrying
            verbose: Log request/response details at DEBUG
            exchange: Exchange name used in results and log lines
        """
        self.signer = signer
        self.base_url = (base_url or self.BASE_URL).rstrip("/") + "/"
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.verbose = verbose
        self.exchange = exchange
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session on first use; reuse it afterwards."""
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self.logger.debug("BitBayAPIClient session created")
        return self.session

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("BitBayAPIClient session closed")

    # ============================================
    # Request Construction
    # ============================================

    @staticmethod
    def encode_query(query: HistoryQuery) -> str:
        """
        Serialize and percent-encode the filter payload.

        Example:
            >>> BitBayAPIClient.encode_query(HistoryQuery(limit=10))
            '%7B%22limit%22%3A%2210%22%2C%22fromTime%22%3Anull%2C%22toTime%22%3Anull%2C%22markets%22%3A%5B%5D%7D'
        """
        payload = json.dumps(query.to_payload(), separators=(",", ":"))
        return quote(payload, safe="")

    def build_url(self, path: str, encoded_query: str) -> URL:
        # encoded=True stops yarl from encoding the query a second time
        return URL(f"{self.base_url}{path}?query={encoded_query}", encoded=True)

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    async def _get(self, path: str, encoded_query: str) -> Union[HttpResponse, TransportError]:
        """
        Signed GET with retry on transient failures.

        Args:
            path: Endpoint path relative to base_url
            encoded_query: Percent-encoded JSON filter

        Returns:
            HttpResponse for a 2xx status, otherwise a TransportError carrying
            the last status code and error body (or the network diagnostic)
        """
        session = self._ensure_session()
        url = self.build_url(path, encoded_query)
        last_error: Optional[TransportError] = None

        for attempt in range(self.max_retries):
            headers = self.signer.headers()
            if self.verbose:
                log_api_request(self.exchange, path, {"query": encoded_query}, headers)

            started = time.monotonic()
            try:
                async with session.get(
                    url,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    raw = await resp.read()
                    body = raw.decode("utf-8", errors="replace")
                    if self.verbose:
                        log_api_response(self.exchange, path, resp.status, time.monotonic() - started, body)

                    if 200 <= resp.status < 300:
                        return HttpResponse(status=resp.status, body=raw)

                    last_error = TransportError(exchange=self.exchange, status=resp.status, body=body)
                    if resp.status not in self.RETRYABLE_STATUSES:
                        return last_error

                    self.logger.warning(
                        f"HTTP {resp.status} on {path} (attempt {attempt + 1}/{self.max_retries})"
                    )

            except asyncio.TimeoutError:
                last_error = TransportError(
                    exchange=self.exchange,
                    reason=f"Timeout after {self.timeout}s on {path}"
                )
                self.logger.warning(f"Timeout on {path} (attempt {attempt + 1}/{self.max_retries})")

            except aiohttp.ClientError as e:
                last_error = TransportError.from_exception(self.exchange, e)
                self.logger.warning(f"Request failed on {path}: {e} (attempt {attempt + 1}/{self.max_retries})")

            if attempt + 1 < self.max_retries:
                await asyncio.sleep(self.retry_backoff * (attempt + 1))

        return last_error

    # ============================================
    # API Methods
    # ============================================

    async def get_transactions(self, query: HistoryQuery) -> Union[HttpResponse, TransportError]:
        """
        Fetch the raw transaction history.

        BitBay Endpoint:
            GET /rest/trading/history/transactions?query={percent-encoded JSON}

        Args:
            query: History filter (HistoryQuery() = full history)
        """
        return await self._get(self.TRANSACTIONS_PATH, self.encode_query(query))
