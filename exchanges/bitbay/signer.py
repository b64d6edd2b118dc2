"""
BitBay Request Signer

Every private BitBay REST call carries five headers:

    API-Key            public key
    API-Hash           hex HMAC-SHA512 of publicKey + Request-Timestamp + body,
                       keyed with the private key
    operation-id       random UUID identifying the call
    Request-Timestamp  Unix time in seconds
    Content-Type       application/json

GET requests have no body, so the hash covers the public key and timestamp
only. The clock and the operation-id factory are injectable, which makes a
signature reproducible offline for a fixed time and id.
"""

import hashlib
import hmac
import uuid
from typing import Callable, Dict, Optional

from core.utils.time import current_utc_timestamp


class BitBaySigner:
    """
    Computes authentication headers for one set of BitBay API keys.

    Each adapter owns its own signer; signers never share key material.

    Example:
        >>> signer = BitBaySigner("pub", "priv", clock=lambda: 1529586986,
        ...                       operation_id=lambda: "00000000-0000-0000-0000-000000000000")
        >>> signer.headers()["Request-Timestamp"]
        '1529586986'
    """

    def __init__(
        self,
        public_key: str,
        private_key: str,
        clock: Optional[Callable[[], int]] = None,
        operation_id: Optional[Callable[[], str]] = None
    ):
        self.public_key = public_key
        self._private_key = private_key.encode("utf-8")
        self._clock = clock or current_utc_timestamp
        self._operation_id = operation_id or (lambda: str(uuid.uuid4()))

    def signature(self, timestamp: str, body: str = "") -> str:
        """HMAC-SHA512 hex digest over publicKey + timestamp + body."""
        message = f"{self.public_key}{timestamp}{body}".encode("utf-8")
        return hmac.new(self._private_key, message, hashlib.sha512).hexdigest()

    def headers(self, body: str = "") -> Dict[str, str]:
        """
        Build the signed headers for one outgoing request.

        Args:
            body: Request body as sent on the wire ("" for GET)

        Returns:
            Header dictionary ready to pass to aiohttp
        """
        timestamp = str(self._clock())
        return {
            "API-Key": self.public_key,
            "API-Hash": self.signature(timestamp, body),
            "operation-id": self._operation_id(),
            "Request-Timestamp": timestamp,
            "Content-Type": "application/json",
        }

    def __repr__(self) -> str:
        return f"<BitBaySigner(public_key='{self.public_key[:6]}...')>"
