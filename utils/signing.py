# -------------------------------------------------------------------
#  🔐  utils/signing.py  – builds the CB-ACCESS-* headers required by
#  every authenticated Coinbase v2 REST call.
# -------------------------------------------------------------------
"""Implements the HMAC-SHA256 flow from the Coinbase API-key docs:
   1. prehash = timestamp + METHOD + request path + body ("" when empty).
   2. HmacSHA256(api_secret, prehash) → hex digest (lower-case).
   3. Send key, timestamp and signature as CB-ACCESS-* headers."""
from __future__ import annotations
import hashlib, hmac, json, time
from typing import Any, Dict, Optional

from core.errors import ConfigurationError

API_PREFIX = "/v2"
KEY_HEADER = "CB-ACCESS-KEY"
TIMESTAMP_HEADER = "CB-ACCESS-TIMESTAMP"
SIGN_HEADER = "CB-ACCESS-SIGN"
__all__ = ["RequestSigner", "generate_signature", "canonical_body", "stamp", "API_PREFIX"]


def stamp() -> int:
    """Server-accepted timestamp: whole seconds since the epoch."""
    return int(time.time())


def canonical_body(body: Optional[Any]) -> str:
    """Serialize a request body exactly as it goes on the wire."""
    if body is None:
        return ""
    return json.dumps(body)


def generate_signature(api_secret: str, timestamp: int | str, method: str, path: str, body: str = "") -> str:
    """Return the CB-ACCESS-SIGN value for one request.

    Parameters
    ----------
    api_secret : str – never transmitted, never logged.
    timestamp  : int – the same value sent in CB-ACCESS-TIMESTAMP.
    method     : str – HTTP verb, upper-cased before hashing.
    path       : str – full request path including the /v2 prefix.
    body       : str – serialized JSON body, "" for bodiless requests.
    """
    prehash = f"{timestamp}{method.upper()}{path}{body}"
    return hmac.new(api_secret.encode(), prehash.encode(), hashlib.sha256).hexdigest()


class RequestSigner:
    """Holds the API credentials and stamps outgoing requests."""

    def __init__(self, api_key: str, api_secret: str):
        if not api_key or not api_secret:
            raise ConfigurationError(
                "[Coinbase] Missing apiKey or apiSecret parameter(s). These are required."
            )
        self.api_key = api_key
        self._api_secret = api_secret

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(api_key={self.api_key!r})"

    def sign(self, method: str, path: str, body: str = "", *, timestamp: Optional[int] = None) -> Dict[str, str]:
        # a fresh timestamp per call; the server rejects replays
        ts = stamp() if timestamp is None else timestamp
        return {
            KEY_HEADER: self.api_key,
            TIMESTAMP_HEADER: str(ts),
            SIGN_HEADER: generate_signature(self._api_secret, ts, method, path, body),
        }
