"""
core/errors.py
--------------
Exception hierarchy shared by the signer, the verifier and the client.
"""

from __future__ import annotations

from typing import Any, Optional


class CoinbaseError(Exception):
    """Base class for everything this package raises."""


class ConfigurationError(CoinbaseError, ValueError):
    """Missing or unusable credentials / key material. Not retryable."""


class ValidationError(CoinbaseError, ValueError):
    """Caller passed a bad argument; raised before any network call."""


class NotReadyError(CoinbaseError):
    """A wallet-dependent operation ran before the accounts were loaded."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"[Coinbase] {operation} : Please wait until accounts have been loaded."
        )


class CoinbaseAPIError(CoinbaseError):
    """The upstream call failed or answered with an error status."""

    def __init__(
        self,
        method: str,
        url: str,
        status: Optional[int] = None,
        payload: Any = None,
        reason: Optional[str] = None,
    ):
        self.method = method.upper()
        self.url = url
        self.status = status
        self.payload = payload
        outcome = status if status is not None else (reason or "no response")
        super().__init__(f"[Coinbase] {self.method} - {url}, FAIL : {outcome}")
