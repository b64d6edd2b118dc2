"""
Unit Tests for the BitBay Exchange Adapter

These tests verify that BitBayExchange:
- Maps every history item to a Transaction, keeping the response order
- Classifies transport, decode and exchange-reported failures
- Degrades to an empty list (with one error log line) in transactions()
- Treats an empty history as success
- Keeps signer and transport state per adapter instance

Run with:
    pytest tests/unit/test_bitbay_exchange.py -v
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.errors import (
    CredentialError,
    DecodeError,
    ExchangeBusinessError,
    TransactionHistory,
    TransportError,
)
from core.schemas import Credential, HistoryQuery, Transaction
from exchanges.bitbay import BitBayExchange


# ============================================
# Helpers
# ============================================

class MockResponse:
    def __init__(self, status, text=""):
        self.status = status
        self._text = text

    async def read(self):
        if isinstance(self._text, bytes):
            return self._text
        return self._text.encode("utf-8")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


class MockSession:
    """Hands out queued responses and records each request"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": str(url), "headers": headers})
        return self.responses.pop(0)

    async def close(self):
        pass


def make_credentials(public="public-key", private="private-key"):
    return [
        Credential(name="publicKey", value=public),
        Credential(name="privateKey", value=private),
    ]


def make_exchange(*responses, **kwargs):
    """BitBayExchange whose transport answers with the given responses"""
    exchange = BitBayExchange(
        make_credentials(),
        "%Y-%m-%d %H:%M:%S",
        max_retries=kwargs.pop("max_retries", 1),
        retry_backoff=0,
        clock=lambda: 1529586986,
        operation_id=lambda: "op-1",
        **kwargs
    )
    exchange.client.session = MockSession(*responses)
    return exchange


def item(id, market="BTC-PLN", time="1529586986021", amount="0.5", rate="25000",
         action="Buy", commission="0.0003"):
    return {
        "id": id,
        "market": market,
        "time": time,
        "amount": amount,
        "rate": rate,
        "initializedBy": action,
        "wasTaker": True,
        "userAction": action,
        "offerId": f"offer-{id}",
        "commissionValue": commission,
    }


def ok_body(*items):
    return json.dumps({
        "status": "Ok",
        "totalRows": str(len(items)),
        "items": list(items),
        "query": {"markets": [], "limit": [], "offset": []},
        "nextPageCursor": "start",
    })


def error_records(caplog):
    return [r for r in caplog.records if r.levelno >= logging.ERROR]


# ============================================
# Construction
# ============================================

class TestConstruction:
    """Tests for adapter construction"""

    def test_missing_private_key_fails_fast(self):
        """Verify a missing required credential is a configuration error"""
        with pytest.raises(CredentialError, match="privateKey"):
            BitBayExchange([Credential(name="publicKey", value="pub")])

    def test_duplicate_public_key_fails_fast(self):
        """Verify an ambiguous credential name is rejected"""
        credentials = make_credentials() + [Credential(name="publicKey", value="other")]

        with pytest.raises(CredentialError, match="publicKey"):
            BitBayExchange(credentials)

    def test_transport_is_lazy_and_memoized(self):
        """Verify the HTTP client is built on first access and then reused"""
        exchange = BitBayExchange(make_credentials())

        assert exchange._client is None
        client = exchange.client
        assert exchange.client is client
        assert client.session is None  # no session until the first request

    def test_extra_credentials_are_ignored(self):
        """Verify unrelated credential names do not matter"""
        credentials = make_credentials() + [Credential(name="passphrase", value="x")]

        exchange = BitBayExchange(credentials)

        assert exchange.signer.public_key == "public-key"


# ============================================
# Successful Responses
# ============================================

class TestSuccessfulFetch:
    """Tests for well-formed success envelopes"""

    @pytest.mark.asyncio
    async def test_maps_every_item_in_response_order(self):
        """Verify N items become N transactions in the same order"""
        body = ok_body(
            item("c", time="1529586986021", action="Sell"),
            item("a", time="1500000000000"),
            item("b", market="eth-btc", time="1600000000000", amount="2", rate="0.03"),
        )
        exchange = make_exchange(MockResponse(200, body))

        result = await exchange.fetch_transactions()

        assert isinstance(result, TransactionHistory)
        assert [tx.transaction_id for tx in result.transactions] == ["c", "a", "b"]
        assert all(isinstance(tx, Transaction) for tx in result.transactions)

    @pytest.mark.asyncio
    async def test_maps_all_fields(self):
        """Verify each canonical field comes from the wire item"""
        exchange = make_exchange(MockResponse(200, ok_body(item("abc", action="Sell"))))

        [tx] = await exchange.transactions()

        assert tx.exchange == "bitbay"
        assert tx.transaction_id == "abc"
        assert tx.timestamp == datetime(2018, 6, 21, 13, 16, 26, 21000, tzinfo=timezone.utc)
        assert tx.market == "BTC-PLN"
        assert tx.base_currency == "BTC"
        assert tx.quote_currency == "PLN"
        assert tx.side == "sell"
        assert tx.amount == Decimal("0.5")
        assert tx.rate == Decimal("25000")
        assert tx.fee == Decimal("0.0003")
        assert tx.was_taker is True
        assert tx.total == Decimal("12500.0")

    @pytest.mark.asyncio
    async def test_textual_time_uses_shared_date_format(self):
        """Verify non-epoch timestamps are decoded with the configured format"""
        exchange = make_exchange(MockResponse(200, ok_body(item("a", time="2018-06-21 13:16:26"))))

        [tx] = await exchange.transactions()

        assert tx.timestamp == datetime(2018, 6, 21, 13, 16, 26, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_early_epoch_is_read_as_milliseconds(self):
        """Verify times before 2001 are still milliseconds, not seconds"""
        exchange = make_exchange(MockResponse(200, ok_body(item("a", time="946684800000"))))

        [tx] = await exchange.transactions()

        assert tx.timestamp == datetime(2000, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_empty_history_is_not_a_failure(self, caplog):
        """Verify zero items returns an empty list without error logs"""
        exchange = make_exchange(MockResponse(200, ok_body()))

        rows = await exchange.transactions()

        assert rows == []
        assert error_records(caplog) == []

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_history(self, caplog):
        """Verify a 200 with no body decodes to an empty history"""
        exchange = make_exchange(MockResponse(200, ""))

        result = await exchange.fetch_transactions()

        assert isinstance(result, TransactionHistory)
        assert result.transactions == ()
        assert error_records(caplog) == []

    @pytest.mark.asyncio
    async def test_missing_optional_fields_decode(self):
        """Verify a success envelope without paging info or commission still maps"""
        raw = item("a")
        del raw["commissionValue"], raw["wasTaker"], raw["offerId"], raw["initializedBy"]
        exchange = make_exchange(MockResponse(200, json.dumps({"status": "Ok", "items": [raw]})))

        [tx] = await exchange.transactions()

        assert tx.fee == Decimal("0")
        assert tx.was_taker is None

    @pytest.mark.asyncio
    async def test_every_call_fetches_again(self):
        """Verify nothing is cached between calls"""
        exchange = make_exchange(
            MockResponse(200, ok_body(item("a"))),
            MockResponse(200, ok_body(item("a"), item("b"))),
        )

        first = await exchange.transactions()
        second = await exchange.transactions()

        assert len(first) == 1
        assert len(second) == 2
        assert len(exchange.client.session.calls) == 2


# ============================================
# Request Construction
# ============================================

class TestRequest:
    """Tests for the outgoing request"""

    @pytest.mark.asyncio
    async def test_default_query_requests_full_history(self):
        """Verify the default filter has no time bounds and no market filter"""
        exchange = make_exchange(MockResponse(200, ok_body()), history_limit=1000000000)

        await exchange.fetch_transactions()

        url = exchange.client.session.calls[0]["url"]
        assert url.startswith("https://api.bitbay.net/rest/trading/history/transactions?query=")
        assert "%22fromTime%22%3Anull" in url
        assert "%22toTime%22%3Anull" in url
        assert "%22markets%22%3A%5B%5D" in url
        assert "%22limit%22%3A%221000000000%22" in url

    @pytest.mark.asyncio
    async def test_explicit_query_is_sent(self):
        """Verify filter bounds are passed through when given"""
        exchange = make_exchange(MockResponse(200, ok_body()))

        await exchange.fetch_transactions(HistoryQuery(from_time=1500000000000, markets=["btc-pln"]))

        url = exchange.client.session.calls[0]["url"]
        assert "%22fromTime%22%3A1500000000000" in url
        assert "%22BTC-PLN%22" in url

    @pytest.mark.asyncio
    async def test_request_is_signed(self):
        """Verify the signer's headers are attached"""
        exchange = make_exchange(MockResponse(200, ok_body()))

        await exchange.fetch_transactions()

        headers = exchange.client.session.calls[0]["headers"]
        assert headers["API-Key"] == "public-key"
        assert headers["Request-Timestamp"] == "1529586986"
        assert headers["operation-id"] == "op-1"
        assert headers["API-Hash"] == exchange.signer.signature("1529586986")


# ============================================
# Failure Classification
# ============================================

class TestDecodeFailures:
    """Tests for payloads that do not match the schema"""

    @pytest.mark.asyncio
    async def test_invalid_json_is_decode_error(self):
        """Verify unparsable bodies become DecodeError carrying the raw body"""
        exchange = make_exchange(MockResponse(200, "<html>maintenance</html>"))

        result = await exchange.fetch_transactions()

        assert isinstance(result, DecodeError)
        assert result.body == "<html>maintenance</html>"
        assert result.diagnostic

    @pytest.mark.asyncio
    async def test_decode_error_logs_once_with_raw_body(self, caplog):
        """Verify transactions() returns [] and logs exactly one error with the body"""
        body = '{"items": "not-a-list"}'
        exchange = make_exchange(MockResponse(200, body))

        rows = await exchange.transactions()

        assert rows == []
        records = error_records(caplog)
        assert len(records) == 1
        assert body in records[0].getMessage()

    @pytest.mark.asyncio
    async def test_unmappable_item_is_decode_error(self):
        """Verify an item violating the canonical schema is a decode failure"""
        exchange = make_exchange(MockResponse(200, ok_body(item("a", time="yesterday"))))

        result = await exchange.fetch_transactions()

        assert isinstance(result, DecodeError)
        assert "yesterday" in result.body

    @pytest.mark.asyncio
    async def test_out_of_range_time_is_decode_error(self, caplog):
        """Verify an absurdly large epoch value is classified, not raised"""
        exchange = make_exchange(MockResponse(200, ok_body(item("a", time="1" + "0" * 400))))

        rows = await exchange.transactions()
        result = await make_exchange(
            MockResponse(200, ok_body(item("a", time="1" + "0" * 400)))
        ).fetch_transactions()

        assert rows == []
        assert len(error_records(caplog)) == 1
        assert isinstance(result, DecodeError)

    @pytest.mark.asyncio
    async def test_non_utf8_body_is_decode_error(self):
        """Verify undecodable bytes with a success status become DecodeError after one request"""
        exchange = make_exchange(
            MockResponse(200, b'{"status":"Ok","items":[\xff\xfe]}'),
            max_retries=3,
        )

        result = await exchange.fetch_transactions()

        assert isinstance(result, DecodeError)
        assert "UTF-8" in result.diagnostic
        assert result.body.startswith('{"status":"Ok","items":[')
        assert "�" in result.body
        assert len(exchange.client.session.calls) == 1


class TestBusinessFailures:
    """Tests for failures reported inside a 200 response"""

    @pytest.mark.asyncio
    async def test_known_code_is_described(self, caplog):
        """Verify a Fail envelope logs the known description of its code"""
        body = json.dumps({"status": "Fail", "errors": ["INVALID_HASH_SIGNATURE"]})
        exchange = make_exchange(MockResponse(200, body))

        rows = await exchange.transactions()

        assert rows == []
        records = error_records(caplog)
        assert len(records) == 1
        message = records[0].getMessage()
        assert "INVALID_HASH_SIGNATURE" in message
        assert "The generated request signature (API-Hash) is invalid" in message

    @pytest.mark.asyncio
    async def test_unknown_code_does_not_crash(self, caplog):
        """Verify an unrecognized code is logged with its raw text"""
        body = json.dumps({"status": "Fail", "errors": ["SOME_NEW_CODE"]})
        exchange = make_exchange(MockResponse(200, body))

        result = await exchange.fetch_transactions()
        rows = await make_exchange(MockResponse(200, body)).transactions()

        assert isinstance(result, ExchangeBusinessError)
        assert result.codes == ("SOME_NEW_CODE",)
        assert rows == []
        assert "SOME_NEW_CODE" in error_records(caplog)[0].getMessage()

    @pytest.mark.asyncio
    async def test_every_code_is_reported(self):
        """Verify all codes of one envelope are kept in order"""
        body = json.dumps({"status": "Fail", "errors": ["ACTION_LIMIT_EXCEEDED", "ACTION_BLOCKED"]})
        exchange = make_exchange(MockResponse(200, body))

        result = await exchange.fetch_transactions()

        assert result.codes == ("ACTION_LIMIT_EXCEEDED", "ACTION_BLOCKED")
        assert len(result.lines()) == 2


class TestTransportFailures:
    """Tests for HTTP-level failures"""

    @pytest.mark.asyncio
    async def test_unauthorized_is_not_decoded(self, caplog):
        """Verify a 401 is a TransportError even when the body looks like history"""
        body = ok_body(item("a"))
        exchange = make_exchange(MockResponse(401, body))

        result = await exchange.fetch_transactions()

        assert isinstance(result, TransportError)
        assert result.status == 401
        assert result.body == body

    @pytest.mark.asyncio
    async def test_unauthorized_logs_status_and_body(self, caplog):
        """Verify transactions() returns [] and logs the status code and error body"""
        exchange = make_exchange(MockResponse(401, "Unauthorized: bad key"))

        rows = await exchange.transactions()

        assert rows == []
        records = error_records(caplog)
        assert len(records) == 1
        assert "401" in records[0].getMessage()
        assert "Unauthorized: bad key" in records[0].getMessage()


# ============================================
# Isolation Between Adapters
# ============================================

class TestIsolation:
    """Tests that adapters never share signer or transport state"""

    def test_different_credentials_sign_differently(self):
        """Verify identical requests are signed with each adapter's own keys"""
        first = BitBayExchange(make_credentials("pub-a", "priv-a"), clock=lambda: 1, operation_id=lambda: "x")
        second = BitBayExchange(make_credentials("pub-b", "priv-b"), clock=lambda: 1, operation_id=lambda: "x")

        assert first.signer is not second.signer
        assert first.signer.headers()["API-Hash"] != second.signer.headers()["API-Hash"]
        assert first.signer.headers()["API-Key"] == "pub-a"
        assert second.signer.headers()["API-Key"] == "pub-b"

    def test_transports_are_separate(self):
        """Verify each adapter builds its own HTTP client"""
        first = BitBayExchange(make_credentials("pub-a", "priv-a"))
        second = BitBayExchange(make_credentials("pub-b", "priv-b"))

        assert first.client is not second.client
        assert first.client.signer is first.signer
        assert second.client.signer is second.signer
