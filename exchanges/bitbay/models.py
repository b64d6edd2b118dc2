"""
BitBay Wire Models

Pydantic models matching the JSON returned by
GET /rest/trading/history/transactions. They live only inside the BitBay
adapter; the rest of the application sees canonical Transaction objects.

Response Format (success):
    {
      "status": "Ok",
      "totalRows": "2",
      "items": [
        {
          "id": "8a6d7ae6-7d2e-4ab4-92e1-0e0d1c9c1e9a",
          "market": "BTC-PLN",
          "time": "1529586986021",
          "amount": "0.5",
          "rate": "25000",
          "initializedBy": "Buy",
          "wasTaker": true,
          "userAction": "Buy",
          "offerId": "ec6c4b23-0a5a-4c5b-8d35-5a51b0b6c5f2",
          "commissionValue": "0.0003"
        }
      ],
      "query": {...},
      "nextPageCursor": "..."
    }

Response Format (exchange-reported failure, still HTTP 200):
    {
      "status": "Fail",
      "errors": ["INVALID_HASH_SIGNATURE"]
    }
"""

from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from core.schemas import Transaction
from core.utils.time import parse_exchange_time


# ============================================
# Error Codes
# ============================================

ERROR_DESCRIPTIONS: Dict[str, str] = {
    "PERMISSIONS_NOT_SUFFICIENT": "Permissions granted to the API key are not sufficient to perform the action",
    "INVALID_HASH_SIGNATURE": "The generated request signature (API-Hash) is invalid",
    "ACTION_BLOCKED": "The action is blocked on the user's account",
    "ACTION_LIMIT_EXCEEDED": "The action call limit has been used up, wait a few minutes before the next request",
    "USER_OFFER_COUNT_LIMIT_EXCEEDED": "The limit of offers placed on this market has been reached",
    "MALFORMED_REQUEST": "The JSON sent in the request is malformed",
    "INVALID_REQUEST": "The request was constructed incorrectly",
    "MARKET_CODE_CANNOT_BE_EMPTY": "No market code was given",
}
"""Known BitBay error codes and their descriptions"""

STATUS_OK = "Ok"
STATUS_FAIL = "Fail"


# ============================================
# Wire Models
# ============================================

class BitBayTransactionItem(BaseModel):
    """One executed trade as BitBay reports it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    market: str
    time: Union[str, int]
    amount: Decimal
    rate: Decimal
    user_action: Literal["Buy", "Sell"] = Field(..., alias="userAction")
    initialized_by: Optional[str] = Field(default=None, alias="initializedBy")
    was_taker: Optional[bool] = Field(default=None, alias="wasTaker")
    offer_id: Optional[str] = Field(default=None, alias="offerId")
    commission_value: Optional[Decimal] = Field(default=None, alias="commissionValue")

    def to_transaction(self, date_format: str) -> Transaction:
        """
        Map this wire item to the canonical Transaction.

        Numeric times are always epoch milliseconds on BitBay.

        Args:
            date_format: Shared format for textual timestamps

        Raises:
            ValueError: If the timestamp cannot be decoded or a field violates
                the canonical schema (pydantic.ValidationError is a ValueError)
        """
        return Transaction(
            exchange="bitbay",
            transaction_id=self.id,
            timestamp=parse_exchange_time(self.time, date_format, epoch_milliseconds=True),
            market=self.market,
            side=self.user_action.lower(),
            amount=self.amount,
            rate=self.rate,
            fee=self.commission_value or Decimal("0"),
            was_taker=self.was_taker,
        )


class BitBayTransactionsResponse(BaseModel):
    """
    Envelope of the transaction history endpoint.

    Everything except ``status`` is optional so that partial responses (a
    failure envelope without items, a success without paging info) decode.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str
    items: List[BitBayTransactionItem] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    total_rows: Optional[int] = Field(default=None, alias="totalRows")
    next_page_cursor: Optional[str] = Field(default=None, alias="nextPageCursor")
    query: Optional[Dict[str, Any]] = None

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAIL
