"""
notification_verifier.py
------------------------
Checks the CB-SIGNATURE header Coinbase attaches to payment notifications.

Coinbase signs the raw request body with its private key (RSA, SHA-256,
PKCS#1 v1.5) and publishes the matching public key. The body handed in here
must be the exact bytes received; re-serialized JSON will not verify.
"""

from __future__ import annotations

import base64
import binascii
import enum
import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from core.errors import ConfigurationError

_Payload = Union[bytes, bytearray, str]


class VerificationResult(enum.Enum):
    VERIFIED = "verified"
    INVALID = "invalid"
    MALFORMED = "malformed"


class NotificationVerifier:
    """Stateless RSA-SHA256 verifier bound to one public key."""

    def __init__(self, public_key: Union[str, bytes], logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._public_key = self._load_public_key(public_key)

    @classmethod
    def from_file(cls, path: str, logger: Optional[logging.Logger] = None) -> "NotificationVerifier":
        return cls(Path(path).read_bytes(), logger=logger)

    @staticmethod
    def _load_public_key(public_key: Union[str, bytes]) -> rsa.RSAPublicKey:
        if not public_key:
            raise ConfigurationError("[Coinbase] Missing notifications public key.")
        pem = public_key.encode("utf-8") if isinstance(public_key, str) else public_key
        try:
            key = serialization.load_pem_public_key(pem)
        except ValueError as exc:
            raise ConfigurationError(f"[Coinbase] Unreadable notifications public key: {exc}") from exc
        if not isinstance(key, rsa.RSAPublicKey):
            raise ConfigurationError(f"[Coinbase] Expected RSA public key, got {type(key).__name__}")
        return key

    def check(self, body: _Payload, signature: Optional[str]) -> VerificationResult:
        """Classify a notification as verified, invalid or malformed."""
        if not signature:
            return VerificationResult.MALFORMED
        try:
            raw_sig = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            return VerificationResult.MALFORMED

        payload = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        try:
            self._public_key.verify(raw_sig, payload, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return VerificationResult.INVALID
        return VerificationResult.VERIFIED

    def verify(self, body: _Payload, signature: Optional[str]) -> bool:
        result = self.check(body, signature)
        if result is VerificationResult.MALFORMED:
            self.logger.warning("Rejected notification with malformed signature header")
        elif result is VerificationResult.INVALID:
            self.logger.debug("Notification signature did not verify")
        return result is VerificationResult.VERIFIED
